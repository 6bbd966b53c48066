from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core'

    def ready(self):
        """
        Perform startup validation checks when Django initializes.

        This ensures critical security configurations are properly set
        before the application starts accepting requests.
        """
        import sys
        if 'runserver' not in sys.argv and 'gunicorn' not in sys.argv[0]:
            # Skip validation for management commands (except runserver)
            if len(sys.argv) > 1 and sys.argv[1] not in ['runserver', 'test']:
                return

        self._validate_jwt_configuration()
        self._validate_security_settings()
        self._validate_access_configuration()

        logger.info("All startup security validations passed")

    def _validate_jwt_configuration(self):
        """Validate the key used to verify tokens from the login service."""
        jwt_secret = getattr(settings, 'JWT_SECRET_KEY', None)
        secret_key = getattr(settings, 'SECRET_KEY', None)

        if not jwt_secret:
            raise ImproperlyConfigured(
                "JWT_SECRET_KEY must be set in environment variables. "
                "It must match the key the login service signs tokens with."
            )

        if len(jwt_secret) < 32:
            raise ImproperlyConfigured(
                f"JWT_SECRET_KEY must be at least 32 characters long for security. "
                f"Current length: {len(jwt_secret)}."
            )

        if jwt_secret == secret_key:
            raise ImproperlyConfigured(
                "JWT_SECRET_KEY must be different from SECRET_KEY for security."
            )

        unique_chars = len(set(jwt_secret))
        if unique_chars < 16:
            raise ImproperlyConfigured(
                f"JWT_SECRET_KEY has insufficient entropy. "
                f"Found only {unique_chars} unique characters, need at least 16."
            )

        algorithm = getattr(settings, 'JWT_ALGORITHM', 'HS256')
        if algorithm.lower() == 'none':
            raise ImproperlyConfigured("JWT_ALGORITHM must name a signing algorithm.")

        logger.info("JWT configuration validated")

    def _validate_security_settings(self):
        """Validate general security settings."""
        debug = getattr(settings, 'DEBUG', False)
        secret_key = getattr(settings, 'SECRET_KEY', None)

        if not secret_key:
            raise ImproperlyConfigured(
                "SECRET_KEY must be set in environment variables. "
                "Generate with: "
                "python -c \"import secrets; print(secrets.token_urlsafe(50))\""
            )

        if len(secret_key) < 50:
            logger.warning(
                f"SECRET_KEY is shorter than recommended (current: {len(secret_key)}, recommended: 50+)."
            )

        if not debug:
            weak_patterns = [
                'your-secret-key',
                'change-me',
                'insecure',
                'django-insecure',
                '12345',
                'password',
            ]

            secret_lower = secret_key.lower()
            for pattern in weak_patterns:
                if pattern in secret_lower:
                    raise ImproperlyConfigured(
                        f"SECRET_KEY appears to be a default or weak value (contains '{pattern}'). "
                        f"Generate a strong key with: "
                        f"python -c \"import secrets; print(secrets.token_urlsafe(50))\""
                    )

            if not getattr(settings, 'SECURE_SSL_REDIRECT', False):
                logger.warning(
                    "SECURE_SSL_REDIRECT is not enabled in production. "
                    "HTTPS should be enforced for security."
                )

        logger.info("Security settings validated")

    def _validate_access_configuration(self):
        """Validate the settings the route permission resolver reads."""
        claims = getattr(settings, 'JWT_IDENTITY_CLAIMS', None)
        if not claims:
            raise ImproperlyConfigured(
                "JWT_IDENTITY_CLAIMS must name at least one token claim carrying the caller identity."
            )

        for route in getattr(settings, 'RBAC_BYPASS_ROUTES', []):
            if not str(route).strip().startswith('/'):
                raise ImproperlyConfigured(
                    f"RBAC_BYPASS_ROUTES entries must be absolute paths, got {route!r}."
                )

        if not str(getattr(settings, 'SUPER_USER_USERNAME', '') or '').strip():
            raise ImproperlyConfigured("SUPER_USER_USERNAME must not be blank.")

        logger.info("Access configuration validated")
