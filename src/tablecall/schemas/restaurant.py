"""Pydantic schemas for restaurants and branches.

Separate "Create"/"Update" schemas (input) from "Read" schemas (output).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ─── Restaurants ────────────────────────────────────────

class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    cuit: str = Field("", max_length=20)
    description: Optional[str] = Field(None, max_length=500)


class RestaurantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    cuit: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = Field(None, max_length=500)


class RestaurantRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    cuit: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ─── Branches ───────────────────────────────────────────

class BranchCreate(BaseModel):
    restaurant_id: uuid.UUID
    address: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)


class BranchUpdate(BaseModel):
    address: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class BranchRead(BaseModel):
    id: uuid.UUID
    restaurant_id: uuid.UUID
    address: str
    description: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
