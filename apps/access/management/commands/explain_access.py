"""
Management command to explain a route permission decision.

Runs the same resolver the API uses and prints the decision. On a deny it
also prints the diagnostics: whether the page/permission exists at all,
which permission would satisfy the request, what the identity is actually
granted, and how many override rows it has.
"""
import json

from django.apps import apps
from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = 'Explain why an identity is allowed or denied on a dashboard route'

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument('identity', type=str, help='Numeric user id or email address')
        parser.add_argument('route', type=str, help='Dashboard route, e.g. /dashboard/finance')
        parser.add_argument(
            '--action',
            type=str,
            default=None,
            help='Explicit action key (derived from the route when omitted)',
        )
        parser.add_argument(
            '--json',
            action='store_true',
            help='Print the decision as JSON',
        )

    def handle(self, *args, **options):
        """Resolve and print the decision."""
        identity = options['identity'].strip()
        if not identity:
            raise CommandError('Identity must not be empty')

        resolver = apps.get_app_config('access').resolver
        decision = resolver.resolve(identity, options['route'], options.get('action'))

        if options['json']:
            self.stdout.write(json.dumps(decision.as_dict(), indent=2, default=str))
            return

        summary = f'{decision.identity} -> {decision.route} ({decision.action_key or "-"})'
        if decision.allowed:
            self.stdout.write(self.style.SUCCESS(f'✓ ALLOWED {summary}'))
            self.stdout.write(f'  reason: {decision.reason}')
            if decision.permission_id is not None:
                self.stdout.write(
                    f'  matched: page {decision.page_id}, permission {decision.permission_id}'
                )
            if decision.role_id is not None:
                self.stdout.write(f'  via role: {decision.role_id}')
            return

        self.stdout.write(self.style.ERROR(f'✗ DENIED {summary}'))
        self.stdout.write(f'  reason: {decision.reason}')
        self.stdout.write(f'  message: {decision.message}')
        self.stdout.write(f'  permission exists in db: {decision.permission_exists_in_db}')
        if decision.permission_id is not None:
            self.stdout.write(
                f'  required: page {decision.page_id}, permission {decision.permission_id}'
            )
        granted = ', '.join(str(pid) for pid in decision.granted_permission_ids) or 'none'
        self.stdout.write(f'  granted permission ids: {granted}')
        self.stdout.write(f'  user override rows: {decision.user_permission_row_count}')
