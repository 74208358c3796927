"""
Mock identity service exposing caller profiles and location assignments.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import FastAPI, HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from shared.logging import get_logger


class TokenRequest(BaseModel):
    """Login request for the mock token endpoint."""
    username: str
    password: str


class MockIdentityServer:
    """Mock identity service implementation."""

    def __init__(self, secret: str = "mock-identity-secret", port: int = 8090):
        self.port = port
        self.secret = secret
        self.logger = get_logger("mock.identity")
        self.app = FastAPI(title="Mock Identity Service", version="1.0.0")

        # Mock users; an absent "location_ids" answers 404 on assignment lookup
        self.users: Dict[str, Dict[str, Any]] = {
            "admin-1": {
                "username": "admin",
                "password": "admin123",
                "roles": ["admin"],
            },
            "staff-1": {
                "username": "waiter.north",
                "password": "password123",
                "roles": ["staff"],
                "location_ids": ["loc-north"],
            },
            "staff-2": {
                "username": "waiter.new",
                "password": "password123",
                "roles": ["staff"],
            },
        }

        # Names of endpoints that should answer 503: "profile", "locations"
        self.failing: set = set()

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock identity routes."""
        bearer = HTTPBearer()

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "mock-identity",
                "message": "Mock identity service for the Venue service",
                "version": "1.0.0"
            }

        @self.app.post("/token")
        async def token_endpoint(request: TokenRequest):
            """Issue an access token for a known username/password."""
            for user_id, user in self.users.items():
                if user["username"] == request.username and user["password"] == request.password:
                    return {"access_token": self.issue_token(user_id), "token_type": "Bearer"}
            raise HTTPException(status_code=401, detail="Invalid credentials")

        @self.app.get("/profile")
        async def profile(credentials: HTTPAuthorizationCredentials = Depends(bearer)):
            """Profile of the token's owner."""
            if "profile" in self.failing:
                raise HTTPException(status_code=503, detail="Profile lookup unavailable")

            user_id = self._authenticate(credentials.credentials)
            return {
                "user": {"id": user_id, "username": self.users[user_id]["username"]},
                "roles": self.users[user_id]["roles"]
            }

        @self.app.get("/users/{user_id}/locations")
        async def user_locations(user_id: str, credentials: HTTPAuthorizationCredentials = Depends(bearer)):
            """Location assignments of a user."""
            if "locations" in self.failing:
                raise HTTPException(status_code=503, detail="Assignment lookup unavailable")

            self._authenticate(credentials.credentials)
            user = self.users.get(user_id)
            if user is None or "location_ids" not in user:
                raise HTTPException(status_code=404, detail="No locations assigned")

            return {"location_ids": user["location_ids"]}

    def _authenticate(self, token: str) -> str:
        try:
            payload = jwt.decode(token, self.secret, algorithms=["HS256"])
        except jwt.InvalidTokenError:
            raise HTTPException(status_code=401, detail="Invalid token")

        user_id = payload.get("user_id")
        if user_id not in self.users:
            raise HTTPException(status_code=401, detail="Invalid user")
        return user_id

    def issue_token(self, user_id: str, expires_in: int = 3600) -> str:
        """Sign an HS256 token naming ``user_id``."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "user_id": user_id,
            "roles": self.users[user_id]["roles"],
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm="HS256")

    def assign(self, user_id: str, location_ids: Optional[List[str]]):
        """Replace a user's assignments; ``None`` removes them entirely."""
        if location_ids is None:
            self.users[user_id].pop("location_ids", None)
        else:
            self.users[user_id]["location_ids"] = list(location_ids)


def create_app():
    """Create mock identity application."""
    server = MockIdentityServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8090)
