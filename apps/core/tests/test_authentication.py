"""
Tests for JWT identity authentication.
"""
import pytest
import jwt
from datetime import datetime, timedelta, timezone
from django.test import RequestFactory

from apps.core.authentication import (
    AuthenticatedIdentity,
    JWTIdentityAuthentication,
    decode_token,
    identity_from_claims,
)


@pytest.fixture
def request_factory():
    """Provide Django request factory."""
    return RequestFactory()


def bearer_request(request_factory, token):
    return request_factory.get('/v1/access/me/privileges', HTTP_AUTHORIZATION=f'Bearer {token}')


class TestDecodeToken:
    """Test decode_token."""

    def test_valid_token(self, make_token):
        """Valid tokens decode to their claims."""
        claims = decode_token(make_token('42'))

        assert claims['user_id'] == '42'

    def test_expired_token(self, make_token):
        """Expired tokens are rejected."""
        assert decode_token(make_token('42', expires_in=-1)) is None

    def test_wrong_key(self):
        """Tokens signed with another key are rejected."""
        token = jwt.encode(
            {'user_id': '42', 'exp': datetime.now(timezone.utc) + timedelta(minutes=5)},
            'another-key-another-key-another-key',
            algorithm='HS256'
        )

        assert decode_token(token) is None

    def test_garbage(self):
        """Malformed tokens are rejected."""
        assert decode_token('not-a-token') is None


class TestIdentityFromClaims:
    """Test identity_from_claims."""

    def test_claim_order(self, settings):
        """The first configured claim present wins."""
        settings.JWT_IDENTITY_CLAIMS = ['user_id', 'sub', 'email']

        assert identity_from_claims({'sub': 'x', 'email': 'officer@example.org'}) == 'x'

    def test_numeric_claim_is_stringified(self):
        """Numeric ids become strings."""
        assert identity_from_claims({'user_id': 42}) == '42'

    def test_blank_and_structured_claims_skipped(self):
        """Blank and non-scalar claims are not identities."""
        assert identity_from_claims({'user_id': '  ', 'sub': {'id': 1}, 'email': 'a@b.org'}) == 'a@b.org'
        assert identity_from_claims({'user_id': True}) is None
        assert identity_from_claims({}) is None


class TestJWTIdentityAuthentication:
    """Test JWTIdentityAuthentication."""

    def test_authenticates_bearer_token(self, request_factory, make_token):
        """A valid bearer token authenticates its identity."""
        user, claims = JWTIdentityAuthentication().authenticate(
            bearer_request(request_factory, make_token('42'))
        )

        assert isinstance(user, AuthenticatedIdentity)
        assert user.identity == '42'
        assert user.is_authenticated
        assert user.pk == '42'
        assert claims['user_id'] == '42'

    def test_no_header(self, request_factory):
        """Requests without a header are left unauthenticated."""
        assert JWTIdentityAuthentication().authenticate(request_factory.get('/')) is None

    def test_other_scheme(self, request_factory):
        """Non-bearer schemes are ignored."""
        request = request_factory.get('/', HTTP_AUTHORIZATION='Basic dXNlcjpwYXNz')

        assert JWTIdentityAuthentication().authenticate(request) is None

    def test_malformed_header(self, request_factory):
        """Headers with extra parts are ignored."""
        request = request_factory.get('/', HTTP_AUTHORIZATION='Bearer a b')

        assert JWTIdentityAuthentication().authenticate(request) is None

    def test_token_without_identity(self, request_factory, make_token):
        """Tokens carrying no identity claim do not authenticate."""
        token = make_token('', claim='unused')

        assert JWTIdentityAuthentication().authenticate(bearer_request(request_factory, token)) is None

    def test_authenticate_header(self, request_factory):
        """The challenge names the Bearer scheme."""
        assert JWTIdentityAuthentication().authenticate_header(request_factory.get('/')) == 'Bearer realm="api"'
