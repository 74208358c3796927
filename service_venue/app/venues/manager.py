"""
Location and table operations for the Venue service.
"""

import uuid
from typing import Iterable, List, Protocol

from shared.errors import AccessDeniedError
from shared.logging import get_logger
from ..access.resolver import AccessResolver, TableAccess
from ..auth.caller import CallerContext
from ..models import (
    Location, Table, TableStatus,
    CreateLocationRequest, UpdateLocationRequest,
    CreateTableRequest, UpdateTableRequest,
)


class VenueRepository(Protocol):
    """Storage boundary consumed by the manager."""

    async def create_location(self, location: Location) -> Location: ...
    async def fetch_all_active_locations(self) -> List[Location]: ...
    async def fetch_locations_by_ids(self, location_ids: Iterable[str]) -> List[Location]: ...
    async def get_location(self, location_id: str) -> Location: ...
    async def update_location(self, location: Location) -> Location: ...
    async def deactivate_location(self, location_id: str): ...
    async def create_table(self, table: Table) -> Table: ...
    async def fetch_active_tables_by_location(self, location_id: str) -> List[Table]: ...
    async def get_table(self, table_id: str) -> Table: ...
    async def update_table(self, table: Table) -> Table: ...
    async def deactivate_table(self, table_id: str): ...


def generate_id() -> str:
    return str(uuid.uuid4())


class VenueManager:
    """Applies access decisions to storage fetches and handles CRUD."""

    def __init__(self, repository: VenueRepository, resolver: AccessResolver):
        self.repository = repository
        self.resolver = resolver
        self.logger = get_logger("venue.manager")

    async def list_locations(self, caller: CallerContext) -> List[Location]:
        """List the active locations visible to ``caller``."""
        visibility = await self.resolver.resolve_location_visibility(caller.caller_id, caller.credential)

        if visibility.unrestricted:
            return await self.repository.fetch_all_active_locations()

        self.logger.debug(
            "Listing assigned locations",
            caller_id=caller.caller_id,
            assigned=len(visibility.location_ids)
        )
        if not visibility.location_ids:
            return []

        return await self.repository.fetch_locations_by_ids(sorted(visibility.location_ids))

    async def list_tables(self, location_id: str, caller: CallerContext) -> List[Table]:
        """List the active tables of a location, ordered by code."""
        access = await self.resolver.resolve_table_visibility(location_id, caller.caller_id, caller.credential)
        if access is TableAccess.DENY:
            raise AccessDeniedError(
                "access denied: location not assigned to user",
                details={"location_id": location_id}
            )

        return await self.repository.fetch_active_tables_by_location(location_id)

    # Locations

    async def create_location(self, request: CreateLocationRequest) -> Location:
        location = Location(
            id=generate_id(),
            code=request.code,
            name=request.name,
            address=request.address,
            is_active=True
        )
        return await self.repository.create_location(location)

    async def get_location(self, location_id: str) -> Location:
        return await self.repository.get_location(location_id)

    async def update_location(self, location_id: str, request: UpdateLocationRequest) -> Location:
        """Apply non-empty fields of ``request`` to the stored location."""
        location = await self.repository.get_location(location_id)

        changes = {}
        if request.code:
            changes["code"] = request.code
        if request.name:
            changes["name"] = request.name
        if request.address:
            changes["address"] = request.address
        if request.is_active is not None:
            changes["is_active"] = request.is_active

        return await self.repository.update_location(location.model_copy(update=changes))

    async def delete_location(self, location_id: str):
        await self.repository.deactivate_location(location_id)

    # Tables

    async def create_table(self, request: CreateTableRequest) -> Table:
        table = Table(
            id=generate_id(),
            location_id=request.location_id,
            code=request.code,
            seats=request.seats,
            status=TableStatus.AVAILABLE,
            is_active=True
        )
        return await self.repository.create_table(table)

    async def get_table(self, table_id: str) -> Table:
        return await self.repository.get_table(table_id)

    async def update_table(self, table_id: str, request: UpdateTableRequest) -> Table:
        """Apply provided fields of ``request`` to the stored table."""
        table = await self.repository.get_table(table_id)

        changes = {}
        if request.code:
            changes["code"] = request.code
        if request.seats is not None:
            changes["seats"] = request.seats
        if request.status is not None:
            changes["status"] = request.status
        if request.is_active is not None:
            changes["is_active"] = request.is_active

        return await self.repository.update_table(table.model_copy(update=changes))

    async def update_table_status(self, table_id: str, status: TableStatus) -> Table:
        return await self.update_table(table_id, UpdateTableRequest(status=status))

    async def delete_table(self, table_id: str):
        await self.repository.deactivate_table(table_id)
