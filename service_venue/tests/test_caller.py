"""
Unit tests for caller identification.
"""

from unittest.mock import MagicMock

import pytest

from shared.errors import AuthenticationError
from shared.test_helpers import create_mock_jwt_token, TEST_JWT_SECRET
from service_venue.app.auth.caller import CallerContext, CallerResolver


def request_with(authorization=None):
    request = MagicMock()
    request.headers = {"Authorization": authorization} if authorization is not None else {}
    return request


class TestCallerContext:
    """Test cases for CallerContext."""

    def test_default_is_anonymous(self):
        assert CallerContext().is_anonymous

    def test_partial_identity_is_anonymous(self):
        assert CallerContext(caller_id="u1").is_anonymous
        assert CallerContext(credential="t1").is_anonymous

    def test_full_identity(self):
        assert not CallerContext(caller_id="u1", credential="t1").is_anonymous


class TestCallerResolver:
    """Test cases for CallerResolver."""

    @pytest.fixture
    def resolver(self):
        return CallerResolver(TEST_JWT_SECRET)

    def test_extract_token(self, resolver):
        assert resolver.extract_token(request_with("Bearer abc")) == "abc"
        assert resolver.extract_token(request_with("Basic abc")) == ""
        assert resolver.extract_token(request_with()) == ""

    def test_decode_user_id_claim(self, resolver):
        assert resolver.decode(create_mock_jwt_token("u1")) == "u1"

    def test_decode_falls_back_to_sub(self, resolver):
        assert resolver.decode(create_mock_jwt_token("u1", claim="sub")) == "u1"

    def test_decode_rejects_wrong_signature(self, resolver):
        token = create_mock_jwt_token("u1", secret="another-secret")

        with pytest.raises(AuthenticationError):
            resolver.decode(token)

    def test_decode_rejects_expired(self, resolver):
        token = create_mock_jwt_token("u1", expires_in=-60)

        with pytest.raises(AuthenticationError):
            resolver.decode(token)

    def test_decode_rejects_token_without_identity(self, resolver):
        token = create_mock_jwt_token("u1", claim="email")

        with pytest.raises(AuthenticationError):
            resolver.decode(token)

    @pytest.mark.asyncio
    async def test_optional_without_header_is_anonymous(self, resolver):
        caller = await resolver.optional(request_with())
        assert caller.is_anonymous

    @pytest.mark.asyncio
    async def test_optional_with_invalid_token_is_anonymous(self, resolver):
        caller = await resolver.optional(request_with("Bearer not-a-jwt"))
        assert caller == CallerContext()

    @pytest.mark.asyncio
    async def test_optional_with_valid_token(self, resolver):
        token = create_mock_jwt_token("u1")

        caller = await resolver.optional(request_with(f"Bearer {token}"))

        assert caller == CallerContext(caller_id="u1", credential=token)

    @pytest.mark.asyncio
    async def test_required_without_header(self, resolver):
        with pytest.raises(AuthenticationError):
            await resolver.required(request_with())

    @pytest.mark.asyncio
    async def test_required_with_invalid_token(self, resolver):
        with pytest.raises(AuthenticationError):
            await resolver.required(request_with("Bearer not-a-jwt"))

    @pytest.mark.asyncio
    async def test_required_with_valid_token(self, resolver):
        token = create_mock_jwt_token("u1")

        caller = await resolver.required(request_with(f"Bearer {token}"))

        assert caller.caller_id == "u1"
        assert caller.credential == token
