"""Restaurant API routes: owner-scoped CRUD.

Routes handle HTTP concerns (status codes, error responses), the
service handles ownership and persistence.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tablecall.api.errors import http_error
from tablecall.auth.dependencies import CurrentIdentity, get_current_user
from tablecall.db.engine import get_db
from tablecall.schemas.restaurant import (
    RestaurantCreate,
    RestaurantRead,
    RestaurantUpdate,
)
from tablecall.services.errors import ServiceError
from tablecall.services.restaurant_service import RestaurantService

router = APIRouter(prefix="/restaurants")


def _svc(db: AsyncSession = Depends(get_db)) -> RestaurantService:
    return RestaurantService(db)


@router.post("", response_model=RestaurantRead, status_code=201)
async def create_restaurant(
    body: RestaurantCreate,
    svc: RestaurantService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.create_restaurant(
            identity.user_id,
            name=body.name,
            cuit=body.cuit,
            description=body.description,
        )
    except ServiceError as e:
        raise http_error(e)


@router.get("", response_model=list[RestaurantRead])
async def list_restaurants(
    svc: RestaurantService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    """Restaurants owned by the current user."""
    try:
        return await svc.list_restaurants(identity.user_id)
    except ServiceError as e:
        raise http_error(e)


@router.get("/{restaurant_id}", response_model=RestaurantRead)
async def get_restaurant(
    restaurant_id: uuid.UUID,
    svc: RestaurantService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.get_owned_restaurant(restaurant_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)


@router.put("/{restaurant_id}", response_model=RestaurantRead)
async def update_restaurant(
    restaurant_id: uuid.UUID,
    body: RestaurantUpdate,
    svc: RestaurantService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    try:
        return await svc.update_restaurant(
            restaurant_id,
            identity.user_id,
            name=body.name,
            cuit=body.cuit,
            description=body.description,
        )
    except ServiceError as e:
        raise http_error(e)


@router.delete("/{restaurant_id}", status_code=204)
async def delete_restaurant(
    restaurant_id: uuid.UUID,
    svc: RestaurantService = Depends(_svc),
    identity: CurrentIdentity = Depends(get_current_user),
):
    """Delete a restaurant with all its branches, tables and requests."""
    try:
        await svc.delete_restaurant(restaurant_id, identity.user_id)
    except ServiceError as e:
        raise http_error(e)
