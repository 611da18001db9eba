"""
Unit tests for client token validation middleware.

Tests the middleware that validates the X-ClientId / X-Token header pair.
"""

import json
from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest

from shared.auth.authorizer import create_token
from shared.auth.token_middleware import TokenAuthMiddleware


class TestTokenAuthMiddleware:
    """Test suite for client token validation middleware."""

    @pytest.fixture
    def mock_request(self):
        """Create a mock request object."""
        request = Mock()
        request.method = "GET"
        request.headers = {}
        request.url = Mock()
        request.url.path = "/docs"
        request.state = Mock(spec=[])
        return request

    @pytest.fixture
    def mock_call_next(self):
        """Create a mock call_next function."""
        async def call_next(request):
            response = Mock()
            response.status_code = 200
            response.body = b'["a", "b"]'
            return response
        return call_next

    @pytest.fixture
    def middleware(self, fixed_authorizer):
        return TokenAuthMiddleware(authorizer=fixed_authorizer)

    @pytest.mark.asyncio
    async def test_missing_headers_return_401(self, middleware, mock_request, mock_call_next):
        """Test that a request without credentials is rejected."""
        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 401
        body = json.loads(response.body)
        assert body["error"]["code"] == "UNAUTHORIZED"
        assert body["error"]["message"] == "Unauthorized"
        assert body["error"]["request_id"] == mock_request.state.request_id

    @pytest.mark.asyncio
    async def test_missing_token_returns_401(self, middleware, mock_request, mock_call_next):
        mock_request.headers["x-clientid"] = "alice"

        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token_returns_401(self, middleware, mock_request, mock_call_next):
        mock_request.headers["x-clientid"] = "alice"
        mock_request.headers["x-token"] = "wrong"

        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 401
        assert b"Invalid token." in response.body

    @pytest.mark.asyncio
    async def test_unknown_client_returns_401(self, middleware, mock_request, mock_call_next, fixed_now):
        mock_request.headers["x-clientid"] = "mallory"
        mock_request.headers["x-token"] = create_token("mallory", "guess", fixed_now)

        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 401
        assert b"Unknown clientId" in response.body

    @pytest.mark.asyncio
    async def test_expired_token_returns_401(self, middleware, mock_request, mock_call_next, fixed_now):
        mock_request.headers["x-clientid"] = "alice"
        mock_request.headers["x-token"] = create_token("alice", "alice-secret", fixed_now - timedelta(hours=2))

        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_valid_token_passes_through(self, middleware, mock_request, mock_call_next, fixed_now):
        """Test that a valid token reaches the endpoint and records the client id."""
        mock_request.headers["x-clientid"] = "alice"
        mock_request.headers["x-token"] = create_token("alice", "alice-secret", fixed_now)

        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 200
        assert mock_request.state.client_id == "alice"

    @pytest.mark.asyncio
    async def test_error_response_carries_cors_headers(self, middleware, mock_request, mock_call_next):
        response = await middleware(mock_request, mock_call_next)

        assert response.headers["access-control-allow-origin"] == "*"
        assert "X-Token" in response.headers["access-control-allow-headers"]

    @pytest.mark.asyncio
    async def test_options_bypasses_validation(self, middleware, mock_request, mock_call_next):
        """Test that CORS preflight is never challenged."""
        mock_request.method = "OPTIONS"

        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_bypasses_validation(self, middleware, mock_request, mock_call_next):
        mock_request.url.path = "/health"

        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["POST", "DELETE"])
    async def test_health_writes_require_credentials(self, middleware, mock_request, mock_call_next, method):
        """Test that the health exemption only covers GET."""
        mock_request.method = method
        mock_request.url.path = "/health"

        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_custom_excluded_paths(self, fixed_authorizer, mock_request, mock_call_next):
        mock_request.url.path = "/status"
        middleware = TokenAuthMiddleware(authorizer=fixed_authorizer, exclude_paths=["/status"])

        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 200

    def test_requires_authorizer(self):
        with pytest.raises(ValueError):
            TokenAuthMiddleware()

    @pytest.mark.asyncio
    async def test_real_clock_token(self, authorizer, mock_request, mock_call_next):
        """Test a token computed for the current local hour."""
        middleware = TokenAuthMiddleware(authorizer=authorizer)
        mock_request.headers["x-clientid"] = "bob"
        mock_request.headers["x-token"] = create_token("bob", "bob-secret", datetime.now())

        response = await middleware(mock_request, mock_call_next)

        assert response.status_code == 200
