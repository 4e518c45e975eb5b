"""Branch API routes."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tablecall.api.errors import http_error
from tablecall.auth.dependencies import CurrentIdentity, get_current_user
from tablecall.db.engine import get_db
from tablecall.schemas.restaurant import BranchCreate, BranchRead, BranchUpdate
from tablecall.services.errors import ServiceError
from tablecall.services.restaurant_service import RestaurantService

router = APIRouter(prefix="/branches")


def _svc(db: AsyncSession = Depends(get_db)) -> RestaurantService:
    return RestaurantService(db)


@router.post("", response_model=BranchRead, status_code=201)
async def create_branch(
    body: BranchCreate,
    svc: RestaurantService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.create_branch(
            body.restaurant_id,
            identity.user_id,
            address=body.address,
            description=body.description,
        )
    except ServiceError as e:
        raise http_error(e)


@router.get("/restaurant/{restaurant_id}", response_model=list[BranchRead])
async def list_branches(
    restaurant_id: uuid.UUID,
    svc: RestaurantService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.list_branches(restaurant_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)


@router.get("/{branch_id}", response_model=BranchRead)
async def get_branch(
    branch_id: uuid.UUID,
    svc: RestaurantService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.get_branch(branch_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)


@router.put("/{branch_id}", response_model=BranchRead)
async def update_branch(
    branch_id: uuid.UUID,
    body: BranchUpdate,
    svc: RestaurantService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.update_branch(
            branch_id,
            identity.user_id,
            address=body.address,
            description=body.description,
            is_active=body.is_active,
        )
    except ServiceError as e:
        raise http_error(e)


@router.delete("/{branch_id}", status_code=204)
async def delete_branch(
    branch_id: uuid.UUID,
    svc: RestaurantService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        await svc.delete_branch(branch_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)
