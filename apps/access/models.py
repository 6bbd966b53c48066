"""
Permission catalog models over the legacy case-management tables.

Implements read-only mappings for:
- Page (registered dashboard routes)
- Permission (a Page paired with an action key)
- Role, RolePermission, UserRole (role-based grants)
- UserPermission (direct per-user overrides)
- AdminProfile / LegacyUser (the two profile tables behind the
  Super Admin and Super User flags)

The tables are provisioned by the admin tooling, so every model is
unmanaged: this service never creates, migrates or writes them.
"""
import logging
from django.db import models
from django.db.models.functions import Trim, Upper

logger = logging.getLogger(__name__)


class PageManager(models.Manager):
    """Manager for Page queries."""

    def active(self):
        """Return only active pages."""
        return self.filter(is_active=True)


class Page(models.Model):
    """
    A dashboard route known to the permission system.

    RoutePath is authoritative but was entered by hand, so it is not
    guaranteed to be normalized (trailing slashes, stray whitespace).
    """

    page_id = models.AutoField(primary_key=True, db_column='PageId')
    page_key = models.CharField(
        max_length=100,
        db_column='PageKey',
        help_text="Stable page key (e.g., 'baseline_qol')"
    )
    page_name = models.CharField(
        max_length=255,
        db_column='PageName',
        help_text="Human-readable page name"
    )
    route_path = models.CharField(
        max_length=500,
        db_column='RoutePath',
        help_text="Dashboard route (e.g., '/dashboard/baseline-qol')"
    )
    section_key = models.CharField(max_length=100, null=True, blank=True, db_column='SectionKey')
    sort_order = models.IntegerField(null=True, blank=True, db_column='SortOrder')
    is_active = models.BooleanField(default=True, db_column='IsActive')

    objects = PageManager()

    class Meta:
        managed = False
        db_table = 'PE_Rights_Page'
        ordering = ['sort_order', 'page_id']

    def __str__(self):
        return f"{self.page_name} ({self.route_path})"


class PermissionManager(models.Manager):
    """Manager for Permission queries."""

    def usable(self):
        """Permissions whose own row and owning page are both active."""
        return self.filter(is_active=True, page__is_active=True)

    def for_action(self, action_key):
        """
        Usable permissions for an action key.

        ActionKey is stored uppercase but was not always trimmed, so the
        comparison is done on the trimmed, uppercased column.
        """
        return self.usable().annotate(
            normalized_action=Upper(Trim('action_key'))
        ).filter(normalized_action=action_key.strip().upper())


class Permission(models.Model):
    """The pairing of a Page with an action key (VIEW, ADD, EDIT, DELETE)."""

    permission_id = models.AutoField(primary_key=True, db_column='PermissionId')
    perm_key = models.CharField(
        max_length=150,
        blank=True,
        default='',
        db_column='PermKey',
        help_text="Stable permission key (e.g., 'baseline_qol.add')"
    )
    page = models.ForeignKey(
        Page,
        on_delete=models.DO_NOTHING,
        db_column='PageId',
        db_constraint=False,
        related_name='permissions'
    )
    action_key = models.CharField(
        max_length=50,
        db_column='ActionKey',
        help_text="Canonical uppercase action key"
    )
    is_active = models.BooleanField(default=True, db_column='IsActive')

    objects = PermissionManager()

    class Meta:
        managed = False
        db_table = 'PE_Rights_Permission'

    def __str__(self):
        return f"{self.perm_key or self.permission_id} - {self.action_key}"


class RoleManager(models.Manager):
    """Manager for Role queries."""

    def active(self):
        """Return only active roles."""
        return self.filter(is_active=True)


class Role(models.Model):
    """A named, reusable bundle of permission grants."""

    role_id = models.AutoField(primary_key=True, db_column='RoleId')
    role_name = models.CharField(max_length=150, db_column='RoleName')
    role_description = models.CharField(max_length=500, null=True, blank=True, db_column='RoleDescription')
    is_active = models.BooleanField(default=True, db_column='IsActive')

    objects = RoleManager()

    class Meta:
        managed = False
        db_table = 'PE_Rights_Role'

    def __str__(self):
        return self.role_name


class RolePermission(models.Model):
    """
    Grant edge Role -> Permission.

    IsAllowed uses the heterogeneous legacy encoding (1, 'Yes', 'true', ...)
    and is canonicalized in Python with apps.access.values.to_bool.
    """

    pk = models.CompositePrimaryKey('role_id', 'permission_id')
    role = models.ForeignKey(
        Role,
        on_delete=models.DO_NOTHING,
        db_column='RoleId',
        db_constraint=False,
        related_name='grants'
    )
    permission = models.ForeignKey(
        Permission,
        on_delete=models.DO_NOTHING,
        db_column='PermissionId',
        db_constraint=False,
        related_name='role_grants'
    )
    is_allowed = models.CharField(max_length=10, null=True, blank=True, db_column='IsAllowed')

    class Meta:
        managed = False
        db_table = 'PE_Rights_RolePermission'

    def __str__(self):
        return f"{self.role_id} -> {self.permission_id} ({self.is_allowed})"


class UserRoleManager(models.Manager):
    """Manager for UserRole queries."""

    def for_identity(self, identity):
        """Memberships stored under any lookup key of ``identity``."""
        return self.filter(user_id__in=identity.lookup_keys)


class UserRole(models.Model):
    """Membership edge identity -> Role. UserId is a numeric id or an email."""

    pk = models.CompositePrimaryKey('user_id', 'role_id')
    user_id = models.CharField(max_length=255, db_column='UserId')
    role = models.ForeignKey(
        Role,
        on_delete=models.DO_NOTHING,
        db_column='RoleId',
        db_constraint=False,
        related_name='memberships'
    )

    objects = UserRoleManager()

    class Meta:
        managed = False
        db_table = 'PE_Rights_UserRole'

    def __str__(self):
        return f"{self.user_id} in {self.role_id}"


class UserPermissionManager(models.Manager):
    """Manager for UserPermission queries."""

    def for_identity(self, identity):
        """Overrides stored under any lookup key of ``identity``."""
        return self.filter(user_id__in=identity.lookup_keys)


class UserPermission(models.Model):
    """
    Direct override grant identity -> Permission, bypassing role membership.

    Only rows whose IsAllowed canonicalizes to true grant anything; a false
    row does not revoke a role grant.
    """

    pk = models.CompositePrimaryKey('user_id', 'permission_id')
    user_id = models.CharField(max_length=255, db_column='UserId')
    permission = models.ForeignKey(
        Permission,
        on_delete=models.DO_NOTHING,
        db_column='PermissionId',
        db_constraint=False,
        related_name='user_grants'
    )
    is_allowed = models.CharField(max_length=10, null=True, blank=True, db_column='IsAllowed')

    objects = UserPermissionManager()

    class Meta:
        managed = False
        db_table = 'PE_Rights_UserPermission'

    def __str__(self):
        return f"{self.user_id} -> {self.permission_id} ({self.is_allowed})"


class AdminProfile(models.Model):
    """
    Dashboard user profile. Source of the Super Admin flag.

    UserType holds free text such as 'Super Admin' (historically also
    misspelled 'Supper Admin').
    """

    user_id = models.IntegerField(primary_key=True, db_column='UserId')
    email_address = models.CharField(max_length=255, null=True, blank=True, db_column='email_address')
    full_name = models.CharField(max_length=255, null=True, blank=True, db_column='UserFullName')
    user_type = models.CharField(max_length=100, null=True, blank=True, db_column='UserType')

    class Meta:
        managed = False
        db_table = 'PE_User'

    def __str__(self):
        return f"{self.user_id} <{self.email_address}>"


class LegacyUser(models.Model):
    """
    Login table of the older back office. Source of the Super User flag.

    Supper_User is a boolean-like column with the same mixed encodings as
    the IsAllowed columns.
    """

    username = models.CharField(max_length=255, primary_key=True, db_column='USER_ID')
    full_name = models.CharField(max_length=255, null=True, blank=True, db_column='USER_FULL_NAME')
    user_type = models.CharField(max_length=100, null=True, blank=True, db_column='USER_TYPE')
    super_user = models.CharField(max_length=10, null=True, blank=True, db_column='Supper_User')

    class Meta:
        managed = False
        db_table = 'Table_User'

    def __str__(self):
        return self.username
