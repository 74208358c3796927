"""
Venue service: locations and tables scoped by the identity service.
"""

from typing import List, Optional

from fastapi import Depends, status

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .access.resolver import AccessResolver
from .adapters.identity_client import IdentityClient
from .auth.caller import CallerContext, CallerResolver
from .models import (
    Location, Table, MessageResponse, TableStatusUpdate,
    CreateLocationRequest, UpdateLocationRequest,
    CreateTableRequest, UpdateTableRequest,
)
from .persistence.postgres import PostgreSQLPersistence
from .venues.manager import VenueManager, VenueRepository

API_PREFIX = "/api/venue"


class VenueService(BaseService):
    """Venue service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None,
                 repository: Optional[VenueRepository] = None,
                 identity_client: Optional[IdentityClient] = None):
        self.persistence = repository
        self.identity_client = identity_client
        self._owns_persistence = repository is None
        super().__init__("venue", config)

        if self.persistence is None:
            self.persistence = PostgreSQLPersistence(self.config.postgres_dsn)
        if self.identity_client is None:
            self.identity_client = IdentityClient(
                str(self.config.identity_service_url),
                profile_path=self.config.identity_profile_path,
                timeout=self.config.identity_timeout_seconds,
                metrics=self.metrics
            )

        self.resolver = AccessResolver(self.identity_client, metrics=self.metrics)
        self.manager = VenueManager(self.persistence, self.resolver)
        self.callers = CallerResolver(self.config.jwt_secret, self.config.jwt_algorithm)

        self._setup_venue_routes()

    def _setup_venue_routes(self):
        """Set up venue-specific routes."""
        manager = self.manager
        optional_caller = Depends(self.callers.optional)
        required_caller = Depends(self.callers.required)

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "venue",
                "message": "Venue Service - locations and tables",
                "version": "1.0.0"
            }

        # Public listings; scoped when the caller is identified

        @self.app.get(f"{API_PREFIX}/locations", response_model=List[Location])
        async def list_locations(caller: CallerContext = optional_caller):
            """List locations visible to the caller."""
            return await manager.list_locations(caller)

        # Location management

        @self.app.post(f"{API_PREFIX}/locations", response_model=Location,
                       status_code=status.HTTP_201_CREATED, dependencies=[required_caller])
        async def create_location(request: CreateLocationRequest):
            return await manager.create_location(request)

        @self.app.get(f"{API_PREFIX}/locations/{{location_id}}", response_model=Location,
                      dependencies=[required_caller])
        async def get_location(location_id: str):
            return await manager.get_location(location_id)

        @self.app.put(f"{API_PREFIX}/locations/{{location_id}}", response_model=Location,
                      dependencies=[required_caller])
        async def update_location(location_id: str, request: UpdateLocationRequest):
            return await manager.update_location(location_id, request)

        @self.app.delete(f"{API_PREFIX}/locations/{{location_id}}", response_model=MessageResponse,
                         dependencies=[required_caller])
        async def delete_location(location_id: str):
            await manager.delete_location(location_id)
            return MessageResponse(message="Location deleted successfully")

        # Table management

        @self.app.post(f"{API_PREFIX}/tables", response_model=Table,
                       status_code=status.HTTP_201_CREATED, dependencies=[required_caller])
        async def create_table(request: CreateTableRequest):
            return await manager.create_table(request)

        @self.app.get(f"{API_PREFIX}/tables/{{table_id}}", response_model=Table,
                      dependencies=[required_caller])
        async def get_table(table_id: str):
            return await manager.get_table(table_id)

        @self.app.put(f"{API_PREFIX}/tables/{{table_id}}", response_model=Table,
                      dependencies=[required_caller])
        async def update_table(table_id: str, request: UpdateTableRequest):
            return await manager.update_table(table_id, request)

        @self.app.patch(f"{API_PREFIX}/tables/{{table_id}}/status", response_model=Table,
                        dependencies=[required_caller])
        async def update_table_status(table_id: str, request: TableStatusUpdate):
            return await manager.update_table_status(table_id, request.status)

        @self.app.delete(f"{API_PREFIX}/tables/{{table_id}}", response_model=MessageResponse,
                         dependencies=[required_caller])
        async def delete_table(table_id: str):
            await manager.delete_table(table_id)
            return MessageResponse(message="Table deleted successfully")

        # Must follow the /locations/{id} and /tables/{id} routes
        @self.app.get(f"{API_PREFIX}/{{location_id}}/tables", response_model=List[Table])
        async def list_tables(location_id: str, caller: CallerContext = optional_caller):
            """List active tables of a location."""
            return await manager.list_tables(location_id, caller)

    async def _check_dependencies(self):
        """Check venue service dependencies."""
        dependencies = {}

        health_check = getattr(self.persistence, "health_check", None)
        if health_check is not None:
            dependencies["postgres"] = "ok" if await health_check() else "error"

        dependencies["identity"] = "ok" if await self.identity_client.health_check() else "error"

        return dependencies

    async def start(self):
        """Start venue service components."""
        if self._owns_persistence:
            await self.persistence.start()
        self.logger.info("Venue service started", identity_service=str(self.config.identity_service_url))

    async def stop(self):
        """Stop venue service components."""
        if self._owns_persistence:
            await self.persistence.stop()
        await self.identity_client.close()
        self.logger.info("Venue service stopped")


def create_app():
    """Create venue service application."""
    service = VenueService()
    return service.app


if __name__ == "__main__":
    service = VenueService()
    service.run()
