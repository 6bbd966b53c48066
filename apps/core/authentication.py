"""
Custom DRF authentication classes.

Credentials are verified by the upstream login service, which signs a JWT
carrying the caller's identity. This module only checks the signature and
hands the identity to the views; it never looks the caller up.
"""
import logging
from typing import Any, Dict, Optional

import jwt
from django.conf import settings
from rest_framework.authentication import BaseAuthentication, get_authorization_header

logger = logging.getLogger(__name__)


class AuthenticatedIdentity:
    """
    Minimal request.user for a verified token.

    ``identity`` is the raw claim value: either a numeric user id or an
    email-like string. It is canonicalized later by the access app.
    """

    is_authenticated = True
    is_anonymous = False

    def __init__(self, identity: str, claims: Optional[Dict[str, Any]] = None):
        self.identity = identity
        self.claims = claims or {}

    @property
    def pk(self):
        return self.identity

    def __str__(self):
        return self.identity

    def __repr__(self):
        return f"<AuthenticatedIdentity {self.identity!r}>"


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Validate JWT token and return payload.

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[getattr(settings, 'JWT_ALGORITHM', 'HS256')]
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        return None
    except jwt.InvalidTokenError as e:
        logger.info("Rejected invalid token", extra={'reason': str(e)})
        return None


def identity_from_claims(claims: Dict[str, Any]) -> Optional[str]:
    """Return the first non-empty identity claim, as a string."""
    for claim in getattr(settings, 'JWT_IDENTITY_CLAIMS', ['user_id', 'sub']):
        value = claims.get(claim)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        value = str(value).strip()
        if value:
            return value
    return None


class JWTIdentityAuthentication(BaseAuthentication):
    """
    Authenticate ``Authorization: Bearer <token>`` requests.

    Missing, malformed, expired or badly signed tokens leave the request
    unauthenticated; permission classes then answer 401.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        """
        Return the identity carried by the bearer token, if any.

        Returns:
            tuple: (AuthenticatedIdentity, claims) if the token is valid, None otherwise
        """
        auth = get_authorization_header(request).split()
        if not auth or auth[0].lower() != self.keyword.lower().encode():
            return None
        if len(auth) != 2:
            return None

        try:
            token = auth[1].decode()
        except UnicodeError:
            return None

        claims = decode_token(token)
        if not claims:
            return None

        identity = identity_from_claims(claims)
        if not identity:
            logger.warning(
                "Token carries no identity claim",
                extra={'request_id': getattr(request, 'request_id', None)}
            )
            return None

        return (AuthenticatedIdentity(identity, claims), claims)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'
