"""
PostgreSQL persistence layer for the Venue service.
"""

import asyncio
from typing import Optional, List, Iterable, Dict, Any

import asyncpg

from shared.logging import get_logger
from shared.errors import ConflictError, NotFoundError, StorageError, ValidationError
from ..models import Location, Table

LOCATION_COLUMNS = "id, code, name, address, is_active, created_at, updated_at"
TABLE_COLUMNS = "id, location_id, code, seats, status, is_active, created_at, updated_at"

# Connection loss and pool-acquire timeouts surface outside PostgresError
DATABASE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, asyncio.TimeoutError, OSError)


class PostgreSQLPersistence:
    """PostgreSQL persistence for locations and tables."""

    def __init__(self, dsn: str):
        self.dsn = dsn
        self.logger = get_logger("venue.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Start the persistence layer."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=2,
                max_size=10,
                command_timeout=30
            )

            await self._create_tables()

            self.logger.info("PostgreSQL persistence started")

        except DATABASE_ERRORS as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise StorageError("Failed to start PostgreSQL persistence", details={"error": str(e)})

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL persistence stopped")

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS locations (
                    id VARCHAR(36) PRIMARY KEY,
                    code VARCHAR(50) NOT NULL UNIQUE,
                    name VARCHAR(255) NOT NULL,
                    address TEXT NOT NULL,
                    is_active BOOLEAN NOT NULL DEFAULT TRUE,
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)

            await conn.execute("""
                CREATE TABLE IF NOT EXISTS tables (
                    id VARCHAR(36) PRIMARY KEY,
                    location_id VARCHAR(36) NOT NULL REFERENCES locations(id),
                    code VARCHAR(50) NOT NULL,
                    seats INTEGER NOT NULL CHECK (seats BETWEEN 1 AND 20),
                    status VARCHAR(20) NOT NULL DEFAULT 'available'
                        CHECK (status IN ('available', 'occupied', 'reserved')),
                    is_active BOOLEAN NOT NULL DEFAULT TRUE,
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    UNIQUE (location_id, code)
                );
            """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_tables_location ON tables(location_id);
            """)

    async def health_check(self) -> bool:
        """Check that the database answers."""
        if not self.pool:
            return False
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except DATABASE_ERRORS as e:
            self.logger.warning("PostgreSQL health check failed", error=str(e))
            return False

    # Locations

    async def create_location(self, location: Location) -> Location:
        """Insert a location; duplicate code raises ConflictError."""
        row = await self._fetchrow(
            "create_location",
            f"""
                INSERT INTO locations (id, code, name, address, is_active)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING {LOCATION_COLUMNS}
            """,
            location.id, location.code, location.name, location.address, location.is_active,
            conflict=f"location with code '{location.code}' already exists"
        )
        self.logger.info("Location created", location_id=location.id, code=location.code)
        return self._row_to_location(row)

    async def fetch_all_active_locations(self) -> List[Location]:
        rows = await self._fetch(
            "fetch_all_active_locations",
            f"""
                SELECT {LOCATION_COLUMNS} FROM locations
                WHERE is_active = TRUE
                ORDER BY created_at DESC
            """
        )
        return [self._row_to_location(row) for row in rows]

    async def fetch_locations_by_ids(self, location_ids: Iterable[str]) -> List[Location]:
        ids = list(location_ids)
        if not ids:
            return []
        rows = await self._fetch(
            "fetch_locations_by_ids",
            f"""
                SELECT {LOCATION_COLUMNS} FROM locations
                WHERE id = ANY($1::varchar[]) AND is_active = TRUE
                ORDER BY created_at DESC
            """,
            ids
        )
        return [self._row_to_location(row) for row in rows]

    async def get_location(self, location_id: str) -> Location:
        """Load a location regardless of its active flag."""
        row = await self._fetchrow(
            "get_location",
            f"SELECT {LOCATION_COLUMNS} FROM locations WHERE id = $1",
            location_id
        )
        if not row:
            raise NotFoundError("Location not found", details={"location_id": location_id})
        return self._row_to_location(row)

    async def update_location(self, location: Location) -> Location:
        row = await self._fetchrow(
            "update_location",
            f"""
                UPDATE locations
                SET code = $1, name = $2, address = $3, is_active = $4, updated_at = NOW()
                WHERE id = $5
                RETURNING {LOCATION_COLUMNS}
            """,
            location.code, location.name, location.address, location.is_active, location.id,
            conflict=f"location with code '{location.code}' already exists"
        )
        if not row:
            raise NotFoundError("Location not found", details={"location_id": location.id})
        return self._row_to_location(row)

    async def deactivate_location(self, location_id: str):
        await self._soft_delete("locations", location_id, "Location not found")
        self.logger.info("Location deactivated", location_id=location_id)

    # Tables

    async def create_table(self, table: Table) -> Table:
        """Insert a table; duplicate code within the location raises ConflictError."""
        row = await self._fetchrow(
            "create_table",
            f"""
                INSERT INTO tables (id, location_id, code, seats, status, is_active)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {TABLE_COLUMNS}
            """,
            table.id, table.location_id, table.code, table.seats, table.status.value, table.is_active,
            conflict=f"table with code '{table.code}' already exists in this location"
        )
        self.logger.info("Table created", table_id=table.id, location_id=table.location_id)
        return self._row_to_table(row)

    async def fetch_active_tables_by_location(self, location_id: str) -> List[Table]:
        rows = await self._fetch(
            "fetch_active_tables_by_location",
            f"""
                SELECT {TABLE_COLUMNS} FROM tables
                WHERE location_id = $1 AND is_active = TRUE
                ORDER BY code
            """,
            location_id
        )
        return [self._row_to_table(row) for row in rows]

    async def get_table(self, table_id: str) -> Table:
        """Load a table regardless of its active flag."""
        row = await self._fetchrow(
            "get_table",
            f"SELECT {TABLE_COLUMNS} FROM tables WHERE id = $1",
            table_id
        )
        if not row:
            raise NotFoundError("Table not found", details={"table_id": table_id})
        return self._row_to_table(row)

    async def update_table(self, table: Table) -> Table:
        row = await self._fetchrow(
            "update_table",
            f"""
                UPDATE tables
                SET code = $1, seats = $2, status = $3, is_active = $4, updated_at = NOW()
                WHERE id = $5
                RETURNING {TABLE_COLUMNS}
            """,
            table.code, table.seats, table.status.value, table.is_active, table.id,
            conflict=f"table with code '{table.code}' already exists in this location"
        )
        if not row:
            raise NotFoundError("Table not found", details={"table_id": table.id})
        return self._row_to_table(row)

    async def deactivate_table(self, table_id: str):
        await self._soft_delete("tables", table_id, "Table not found")
        self.logger.info("Table deactivated", table_id=table_id)

    # Helpers

    async def _soft_delete(self, relation: str, entity_id: str, missing_message: str):
        row = await self._fetchrow(
            f"deactivate_{relation}",
            f"""
                UPDATE {relation}
                SET is_active = FALSE, updated_at = NOW()
                WHERE id = $1
                RETURNING id
            """,
            entity_id
        )
        if not row:
            raise NotFoundError(missing_message, details={"id": entity_id})

    async def _fetchrow(self, operation: str, query: str, *args, conflict: str = "already exists"):
        try:
            async with self._acquire() as conn:
                return await conn.fetchrow(query, *args)
        except asyncpg.UniqueViolationError:
            raise ConflictError(conflict)
        except asyncpg.ForeignKeyViolationError as e:
            raise ValidationError("Referenced location does not exist", details={"error": str(e)})
        except DATABASE_ERRORS as e:
            self.logger.error("Database error", operation=operation, error=str(e))
            raise StorageError(f"{operation} failed", details={"error": str(e)})

    async def _fetch(self, operation: str, query: str, *args) -> List[asyncpg.Record]:
        try:
            async with self._acquire() as conn:
                return await conn.fetch(query, *args)
        except DATABASE_ERRORS as e:
            self.logger.error("Database error", operation=operation, error=str(e))
            raise StorageError(f"{operation} failed", details={"error": str(e)})

    def _acquire(self):
        if not self.pool:
            raise StorageError("PostgreSQL persistence not started")
        return self.pool.acquire()

    @staticmethod
    def _row_to_location(row: Dict[str, Any]) -> Location:
        return Location(
            id=row["id"],
            code=row["code"],
            name=row["name"],
            address=row["address"],
            is_active=row["is_active"],
            created_at=row["created_at"],
            updated_at=row["updated_at"]
        )

    @staticmethod
    def _row_to_table(row: Dict[str, Any]) -> Table:
        return Table(
            id=row["id"],
            location_id=row["location_id"],
            code=row["code"],
            seats=row["seats"],
            status=row["status"],
            is_active=row["is_active"],
            created_at=row["created_at"],
            updated_at=row["updated_at"]
        )
