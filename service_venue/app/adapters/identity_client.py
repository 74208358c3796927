"""
Identity service client for the Venue service.

Answers two questions about a caller: whether they hold the ``admin`` role
and which location IDs they are assigned to. Every failure (transport,
timeout, unexpected status, undecodable body) is raised as
``IdentityServiceError``; callers decide how to degrade. There is no retry.
"""

import time
from typing import List, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError

from shared.errors import IdentityServiceError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

ADMIN_ROLE = "admin"
BODY_SNIPPET_LIMIT = 200


class ProfileResponse(BaseModel):
    """Caller profile as returned by the identity service."""
    roles: Optional[List[str]] = None


class AssignedLocationsResponse(BaseModel):
    """Location assignments as returned by the identity service."""
    location_ids: Optional[List[str]] = None


class IdentityClient:
    """Client for communicating with the identity service."""

    def __init__(self, base_url: str, profile_path: str = "/profile", timeout: float = 5.0,
                 metrics: Optional[MetricsCollector] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.profile_path = "/" + profile_path.lstrip("/")
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger("venue.identity_client")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def close(self):
        """Release pooled connections."""
        await self._client.aclose()

    async def is_admin(self, caller_id: str, credential: str) -> bool:
        """Return True iff the caller's profile lists the admin role."""
        response = await self._get("is_admin", self.profile_path, credential)

        if response.status_code != 200:
            raise self._status_error("is_admin", response)

        profile = self._decode("is_admin", response, ProfileResponse)
        return ADMIN_ROLE in (profile.roles or [])

    async def get_assigned_locations(self, caller_id: str, credential: str) -> List[str]:
        """Return the location IDs assigned to the caller.

        A 404 means the caller has no assignments yet and yields an empty list.
        """
        response = await self._get(
            "assigned_locations", f"/users/{quote(caller_id, safe='')}/locations", credential
        )

        if response.status_code == 404:
            self._record("assigned_locations", "ok")
            return []

        if response.status_code != 200:
            raise self._status_error("assigned_locations", response)

        assignments = self._decode("assigned_locations", response, AssignedLocationsResponse)
        return list(assignments.location_ids or [])

    async def health_check(self) -> bool:
        """Check that the identity service answers at all."""
        try:
            await self._client.get(self.profile_path)
            return True
        except httpx.HTTPError:
            return False

    async def _get(self, operation: str, path: str, credential: str) -> httpx.Response:
        start_time = time.time()
        try:
            response = await self._client.get(
                path,
                headers={"Authorization": f"Bearer {credential}"}
            )
        except httpx.TimeoutException as e:
            self._record(operation, "error")
            self.logger.warning("Identity service timeout", operation=operation, error=str(e))
            raise IdentityServiceError("request timed out", details={"operation": operation})
        except httpx.HTTPError as e:
            self._record(operation, "error")
            self.logger.warning("Identity service unreachable", operation=operation, error=str(e))
            raise IdentityServiceError("request failed", details={"operation": operation, "error": str(e)})
        finally:
            if self.metrics:
                self.metrics.observe_identity_latency(operation, time.time() - start_time)

        return response

    def _decode(self, operation: str, response: httpx.Response, model):
        try:
            decoded = model.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            self._record(operation, "error")
            self.logger.warning(
                "Identity service returned undecodable body",
                operation=operation,
                error=str(e)
            )
            raise IdentityServiceError(
                "failed to decode response",
                status_code=response.status_code,
                body=response.text[:BODY_SNIPPET_LIMIT],
                details={"operation": operation}
            )

        self._record(operation, "ok")
        return decoded

    def _status_error(self, operation: str, response: httpx.Response) -> IdentityServiceError:
        self._record(operation, "error")
        self.logger.warning(
            "Identity service error status",
            operation=operation,
            status_code=response.status_code
        )
        return IdentityServiceError(
            f"returned status {response.status_code}",
            status_code=response.status_code,
            body=response.text[:BODY_SNIPPET_LIMIT],
            details={"operation": operation}
        )

    def _record(self, operation: str, outcome: str):
        if self.metrics:
            self.metrics.record_identity_lookup(operation, outcome)
