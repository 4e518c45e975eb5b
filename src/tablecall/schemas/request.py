"""Pydantic schemas for service requests (table calls).

The create schema is what the diner's phone posts after scanning the QR
code: the plaintext coordinates from the URL plus the proof (`hash`).
"""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from tablecall.events.types import REQUEST_CREATED


class ServiceRequestCreate(BaseModel):
    restaurant_id: str = Field(..., min_length=1, description="Restaurant id from the QR URL (r)")
    branch_id: str = Field(..., min_length=1, description="Branch id from the QR URL (b)")
    table_id: str = Field(..., min_length=1, description="Table id from the QR URL (t)")
    table_number: int = Field(..., ge=1, description="Table number from the QR URL (n)")
    hash: str = Field(..., min_length=1, description="QR proof from the URL (h)")


class ServiceRequestStatusUpdate(BaseModel):
    status: Literal["pending", "attended", "cancelled"]


class ServiceRequestRead(BaseModel):
    id: uuid.UUID
    restaurant_id: uuid.UUID
    branch_id: uuid.UUID
    table_id: uuid.UUID
    table_number: int
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RequestCreatedEvent(BaseModel):
    """Pushed to the restaurant's dashboards when a table calls."""
    type: Literal["request.created"] = REQUEST_CREATED
    request: ServiceRequestRead
