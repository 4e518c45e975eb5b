"""Service request routes.

Two routers:
- public_router: the diner's phone posts here after scanning a table's QR
  code. No auth; the QR proof is the only credential.
- router: owners list and handle their restaurants' requests.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tablecall.api.errors import http_error
from tablecall.auth.dependencies import CurrentIdentity, get_current_user
from tablecall.db.engine import get_db
from tablecall.db.models import REQUEST_PENDING, REQUEST_STATUSES
from tablecall.qr import QRCodec
from tablecall.qr.codec import get_codec
from tablecall.realtime.hub import NotificationHub, get_hub
from tablecall.schemas.request import (
    ServiceRequestCreate,
    ServiceRequestRead,
    ServiceRequestStatusUpdate,
)
from tablecall.services.errors import InvalidInputError, ServiceError
from tablecall.services.request_service import RequestService

public_router = APIRouter(prefix="/public")
router = APIRouter(prefix="/requests")


def _svc(
    db: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_hub),
    codec: QRCodec = Depends(get_codec),
) -> RequestService:
    return RequestService(db, hub, codec)


# ─── Public (QR scan) ───────────────────────────────────


@public_router.post(
    "/request-account", response_model=ServiceRequestRead, status_code=201
)
async def request_account(
    body: ServiceRequestCreate,
    svc: RequestService = Depends(_svc),
):
    """A table calls for service. Notifies the restaurant's dashboards."""
    try:
        return await svc.create_request(
            restaurant_id=body.restaurant_id,
            branch_id=body.branch_id,
            table_id=body.table_id,
            table_number=body.table_number,
            proof=body.hash,
        )
    except ServiceError as e:
        raise http_error(e)


# ─── Owner ──────────────────────────────────────────────


@router.get("/restaurant/{restaurant_id}", response_model=list[ServiceRequestRead])
async def list_requests(
    restaurant_id: uuid.UUID,
    status: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    svc: RequestService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    """Requests for a restaurant, newest first. Optional ?status= filter."""
    try:
        if status is not None and status not in REQUEST_STATUSES:
            raise InvalidInputError(f"Invalid status: {status}")
        return await svc.list_requests(
            restaurant_id, identity.user_id, status=status, limit=limit
        )
    except ServiceError as e:
        raise http_error(e)


@router.get(
    "/restaurant/{restaurant_id}/pending", response_model=list[ServiceRequestRead]
)
async def list_pending_requests(
    restaurant_id: uuid.UUID,
    svc: RequestService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.list_requests(
            restaurant_id, identity.user_id, status=REQUEST_PENDING
        )
    except ServiceError as e:
        raise http_error(e)


@router.get("/{request_id}", response_model=ServiceRequestRead)
async def get_request(
    request_id: uuid.UUID,
    svc: RequestService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.get_request(request_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)


@router.put("/{request_id}/status", response_model=ServiceRequestRead)
async def update_request_status(
    request_id: uuid.UUID,
    body: ServiceRequestStatusUpdate,
    svc: RequestService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.update_status(request_id, identity.user_id, body.status)
    except ServiceError as e:
        raise http_error(e)


@router.delete("/{request_id}", status_code=204)
async def delete_request(
    request_id: uuid.UUID,
    svc: RequestService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        await svc.delete_request(request_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)
