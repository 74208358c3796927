"""
Caller identification from the Authorization header.
"""

from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Request

from shared.errors import AuthenticationError
from shared.logging import get_logger, set_caller_context

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class CallerContext:
    """Per-request caller identity. Both fields empty means anonymous."""
    caller_id: str = ""
    credential: str = ""

    @property
    def is_anonymous(self) -> bool:
        return not self.caller_id or not self.credential


class CallerResolver:
    """Reads the bearer token and extracts the caller ID from its claims."""

    def __init__(self, jwt_secret: str, jwt_algorithm: str = "HS256"):
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.logger = get_logger("venue.caller")

    def extract_token(self, request: Request) -> str:
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith(BEARER_PREFIX):
            return ""
        return auth_header[len(BEARER_PREFIX):].strip()

    def decode(self, token: str) -> str:
        """Verify ``token`` and return the caller ID it names."""
        try:
            claims = jwt.decode(token, self.jwt_secret, algorithms=[self.jwt_algorithm])
        except jwt.PyJWTError as e:
            raise AuthenticationError("Invalid or expired token", details={"token_error": str(e)})

        caller_id = claims.get("user_id") or claims.get("sub")
        if not caller_id:
            raise AuthenticationError("Token has no user identifier")
        return str(caller_id)

    async def optional(self, request: Request) -> CallerContext:
        """Identify the caller if possible; anonymous otherwise."""
        token = self.extract_token(request)
        if not token:
            return CallerContext()

        try:
            caller_id = self.decode(token)
        except AuthenticationError as e:
            self.logger.info("Ignoring invalid token on public route", error=e.message)
            return CallerContext()

        set_caller_context(caller_id)
        return CallerContext(caller_id=caller_id, credential=token)

    async def required(self, request: Request) -> CallerContext:
        """Identify the caller or reject the request with 401."""
        token = self.extract_token(request)
        if not token:
            raise AuthenticationError("Authorization header required")

        caller_id = self.decode(token)
        set_caller_context(caller_id)
        return CallerContext(caller_id=caller_id, credential=token)
