"""
Location and table data models for the Venue service.
"""

from typing import Optional
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

MIN_SEATS = 1
MAX_SEATS = 20


class TableStatus(str, Enum):
    """Table occupancy states."""
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"


class Location(BaseModel):
    """A physical venue."""
    id: str
    code: str
    name: str
    address: str
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Table(BaseModel):
    """A seating unit belonging to one location."""
    id: str
    location_id: str
    code: str
    seats: int = Field(..., ge=MIN_SEATS, le=MAX_SEATS)
    status: TableStatus = TableStatus.AVAILABLE
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CreateLocationRequest(BaseModel):
    """Request model for location creation."""
    code: str = Field(..., min_length=1, description="Unique short label")
    name: str = Field(..., min_length=1, description="Display name")
    address: str = Field(..., min_length=1, description="Street address")


class UpdateLocationRequest(BaseModel):
    """Request model for location update. Empty strings leave a field unchanged."""
    code: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None


class CreateTableRequest(BaseModel):
    """Request model for table creation."""
    location_id: str = Field(..., min_length=1, description="Owning location ID")
    code: str = Field(..., min_length=1, description="Code, unique within the location")
    seats: int = Field(..., ge=MIN_SEATS, le=MAX_SEATS)


class UpdateTableRequest(BaseModel):
    """Request model for table update."""
    code: Optional[str] = None
    seats: Optional[int] = Field(None, ge=MIN_SEATS, le=MAX_SEATS)
    status: Optional[TableStatus] = None
    is_active: Optional[bool] = None


class TableStatusUpdate(BaseModel):
    """Request model for changing only the table status."""
    status: TableStatus


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str
