"""Table API routes.

Tables carry their QR code URL; creating or renumbering a table
(re)generates it.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tablecall.api.errors import http_error
from tablecall.auth.dependencies import CurrentIdentity, get_current_user
from tablecall.db.engine import get_db
from tablecall.qr import QRCodec
from tablecall.qr.codec import get_codec
from tablecall.schemas.table import (
    TableBulkCreate,
    TableCreate,
    TableRead,
    TableUpdate,
)
from tablecall.services.errors import ServiceError
from tablecall.services.table_service import TableService

router = APIRouter(prefix="/tables")


def _svc(
    db: AsyncSession = Depends(get_db),
    codec: QRCodec = Depends(get_codec),
) -> TableService:
    return TableService(db, codec)


@router.post("", response_model=TableRead, status_code=201)
async def create_table(
    body: TableCreate,
    svc: TableService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.create_table(
            body.branch_id, identity.user_id, number=body.number, capacity=body.capacity
        )
    except ServiceError as e:
        raise http_error(e)


@router.post("/bulk", response_model=list[TableRead], status_code=201)
async def bulk_create_tables(
    body: TableBulkCreate,
    svc: TableService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    """Add `count` tables to a branch, numbered after the current highest."""
    try:
        return await svc.bulk_create(
            body.branch_id, identity.user_id, count=body.count, capacity=body.capacity
        )
    except ServiceError as e:
        raise http_error(e)


@router.get("/restaurant/{restaurant_id}", response_model=list[TableRead])
async def list_restaurant_tables(
    restaurant_id: uuid.UUID,
    svc: TableService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.list_by_restaurant(restaurant_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)


@router.get("/branch/{branch_id}", response_model=list[TableRead])
async def list_branch_tables(
    branch_id: uuid.UUID,
    svc: TableService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.list_by_branch(branch_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)


@router.get("/{table_id}", response_model=TableRead)
async def get_table(
    table_id: uuid.UUID,
    svc: TableService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.get_table(table_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)


@router.put("/{table_id}", response_model=TableRead)
async def update_table(
    table_id: uuid.UUID,
    body: TableUpdate,
    svc: TableService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.update_table(
            table_id,
            identity.user_id,
            number=body.number,
            capacity=body.capacity,
            is_active=body.is_active,
        )
    except ServiceError as e:
        raise http_error(e)


@router.delete("/{table_id}", status_code=204)
async def delete_table(
    table_id: uuid.UUID,
    svc: TableService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        await svc.delete_table(table_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)
