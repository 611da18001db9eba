"""
Client token validation middleware for META Storage.

Validates the X-ClientId / X-Token header pair on every request through the
Authorizer and records the authenticated client id on ``request.state``.
"""

import logging
import uuid
from typing import Callable, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from shared.errors import UnauthorizedError

from .authorizer import Authorizer


logger = logging.getLogger(__name__)

CLIENT_ID_HEADER = "x-clientid"
TOKEN_HEADER = "x-token"
PUBLIC_METHODS = ("GET",)


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """Middleware to validate client tokens in requests."""

    def __init__(
        self,
        app: Optional[Callable] = None,
        authorizer: Optional[Authorizer] = None,
        exclude_paths: Optional[List[str]] = None
    ):
        """
        Initialize token middleware.

        Args:
            app: The ASGI application (for middleware)
            authorizer: Authorizer used to verify tokens
            exclude_paths: Paths whose GET requests bypass token validation

        Raises:
            ValueError: If no authorizer is provided
        """
        if app:
            super().__init__(app)

        if authorizer is None:
            raise ValueError("Authorizer must be provided")

        self.authorizer = authorizer
        self.exclude_paths = exclude_paths if exclude_paths is not None else ["/health"]

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process the request and validate the client token."""
        return await self(request, call_next)

    async def __call__(self, request: Request, call_next: Callable) -> Response:
        """
        Validate the client token in the request.

        Args:
            request: The incoming request
            call_next: The next middleware or endpoint

        Returns:
            Response object
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        if request.method == "OPTIONS" or self._is_excluded(request):
            return await call_next(request)

        client_id = request.headers.get(CLIENT_ID_HEADER)
        token = request.headers.get(TOKEN_HEADER)

        if not client_id or not token:
            logger.warning(f"Missing client credentials for request {request_id} to {request.url.path}")
            return self._create_error_response(
                message="Unauthorized",
                request_id=request_id
            )

        try:
            self.authorizer.authorize(client_id, token)
        except UnauthorizedError as e:
            logger.warning(f"Rejected client {{{client_id}}} for request {request_id}: {e.message}")
            return self._create_error_response(
                message=e.message,
                request_id=request_id
            )

        request.state.client_id = client_id
        logger.debug(f"Client {{{client_id}}} authorized.")
        return await call_next(request)

    def _is_excluded(self, request: Request) -> bool:
        # Only reads are public; POST /health is an upload to bucket "health"
        return request.method in PUBLIC_METHODS and request.url.path in self.exclude_paths

    def _create_error_response(
        self,
        message: str,
        request_id: str,
        status_code: int = 401
    ) -> JSONResponse:
        """
        Create a standardized error response.

        Args:
            message: Error message
            request_id: Request ID for tracking
            status_code: HTTP status code

        Returns:
            JSONResponse with error details
        """
        error_body = {
            "error": {
                "code": UnauthorizedError.code,
                "message": message,
                "request_id": request_id
            }
        }

        return JSONResponse(
            content=error_body,
            status_code=status_code,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Headers": "Origin, X-Requested-With, Content-Type, Accept, X-ClientId, X-Token",
                "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS"
            }
        )
