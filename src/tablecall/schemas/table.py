"""Pydantic schemas for tables and restaurant setup."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tablecall.schemas.restaurant import BranchRead, RestaurantRead


class TableCreate(BaseModel):
    branch_id: uuid.UUID
    number: int = Field(..., ge=1)
    capacity: int = Field(4, ge=1, le=20)


class TableBulkCreate(BaseModel):
    """Add N tables to a branch, numbered after the current highest."""
    branch_id: uuid.UUID
    count: int = Field(..., ge=1, le=100)
    capacity: int = Field(4, ge=1, le=20)


class TableUpdate(BaseModel):
    number: Optional[int] = Field(None, ge=1)
    capacity: Optional[int] = Field(None, ge=1, le=20)
    is_active: Optional[bool] = None


class TableRead(BaseModel):
    id: uuid.UUID
    restaurant_id: uuid.UUID
    branch_id: uuid.UUID
    number: int
    capacity: int
    qr_code: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ─── Setup (restaurant + first branch + tables) ─────────

class SetupRestaurantCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    cuit: str = Field(..., min_length=1, max_length=20)
    address: str = Field(..., min_length=1, max_length=200)
    table_count: int = Field(..., ge=1, le=100)


class SetupRestaurantRead(BaseModel):
    restaurant: RestaurantRead
    branch: BranchRead
    tables: list[TableRead]
