"""
Access resolution for location and table listings.

The two listing paths degrade differently when the identity service fails:

    path            admin check fails   assignment check fails   anonymous
    locations       ALL                 RESTRICTED(empty)        ALL
    tables          ALLOW               ALLOW                    ALLOW

An admin check that fails is treated as "admin" on both paths. A failed
assignment lookup is treated as "no assignments" for locations and as
"assigned" for tables.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Protocol, List

from shared.errors import IdentityServiceError
from shared.logging import get_logger
from shared.metrics import MetricsCollector


class IdentityGateway(Protocol):
    """What the resolver needs from the identity service."""

    async def is_admin(self, caller_id: str, credential: str) -> bool: ...

    async def get_assigned_locations(self, caller_id: str, credential: str) -> List[str]: ...


@dataclass(frozen=True)
class LocationVisibility:
    """Outcome of resolving which locations a caller may list."""
    unrestricted: bool
    location_ids: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def all(cls) -> "LocationVisibility":
        return cls(unrestricted=True)

    @classmethod
    def restricted(cls, location_ids: Iterable[str] = ()) -> "LocationVisibility":
        return cls(unrestricted=False, location_ids=frozenset(location_ids))

    def allows(self, location_id: str) -> bool:
        return self.unrestricted or location_id in self.location_ids


class TableAccess(str, Enum):
    """Outcome of resolving table access for one location."""
    ALLOW = "allow"
    DENY = "deny"


class AccessResolver:
    """Decides what a caller may see."""

    def __init__(self, identity: IdentityGateway, metrics: Optional[MetricsCollector] = None):
        self.identity = identity
        self.metrics = metrics
        self.logger = get_logger("venue.access_resolver")

    async def resolve_location_visibility(self, caller_id: Optional[str],
                                          credential: Optional[str]) -> LocationVisibility:
        """Resolve which locations the caller may list."""
        if not caller_id or not credential:
            self._decision("locations", "all")
            return LocationVisibility.all()

        try:
            is_admin = await self.identity.is_admin(caller_id, credential)
        except IdentityServiceError as e:
            self.logger.warning(
                "Admin check failed, listing all locations",
                caller_id=caller_id,
                error=e.message
            )
            self._decision("locations", "fail_open")
            return LocationVisibility.all()

        if is_admin:
            self._decision("locations", "all")
            return LocationVisibility.all()

        try:
            assigned = await self.identity.get_assigned_locations(caller_id, credential)
        except IdentityServiceError as e:
            self.logger.warning(
                "Assignment lookup failed, listing no locations",
                caller_id=caller_id,
                error=e.message
            )
            self._decision("locations", "fail_closed")
            return LocationVisibility.restricted()

        self._decision("locations", "restricted")
        return LocationVisibility.restricted(assigned)

    async def resolve_table_visibility(self, location_id: str, caller_id: Optional[str],
                                       credential: Optional[str]) -> TableAccess:
        """Resolve whether the caller may list the tables of ``location_id``."""
        if not caller_id or not credential:
            self._decision("tables", "allow")
            return TableAccess.ALLOW

        try:
            is_admin = await self.identity.is_admin(caller_id, credential)
        except IdentityServiceError as e:
            self.logger.warning(
                "Admin check failed, allowing table access",
                caller_id=caller_id,
                location_id=location_id,
                error=e.message
            )
            self._decision("tables", "fail_open")
            return TableAccess.ALLOW

        if is_admin:
            self._decision("tables", "allow")
            return TableAccess.ALLOW

        try:
            assigned = await self.identity.get_assigned_locations(caller_id, credential)
        except IdentityServiceError as e:
            self.logger.warning(
                "Assignment lookup failed, allowing table access",
                caller_id=caller_id,
                location_id=location_id,
                error=e.message
            )
            self._decision("tables", "fail_open")
            return TableAccess.ALLOW

        if location_id in assigned:
            self._decision("tables", "allow")
            return TableAccess.ALLOW

        self.logger.info("Table access denied", caller_id=caller_id, location_id=location_id)
        self._decision("tables", "deny")
        return TableAccess.DENY

    def _decision(self, path: str, outcome: str):
        if self.metrics:
            self.metrics.record_access_decision(path, outcome)
