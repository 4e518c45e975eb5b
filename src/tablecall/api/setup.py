"""Onboarding route: restaurant, first branch and tables in one call."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tablecall.api.errors import http_error
from tablecall.auth.dependencies import CurrentIdentity, get_current_user
from tablecall.db.engine import get_db
from tablecall.qr import QRCodec
from tablecall.qr.codec import get_codec
from tablecall.schemas.table import SetupRestaurantCreate, SetupRestaurantRead
from tablecall.services.errors import ServiceError
from tablecall.services.setup_service import SetupService

router = APIRouter(prefix="/setup")


@router.post("/restaurant", response_model=SetupRestaurantRead, status_code=201)
async def setup_restaurant(
    body: SetupRestaurantCreate,
    db: AsyncSession = Depends(get_db),
    codec: QRCodec = Depends(get_codec),
    identity: CurrentIdentity = Depends(get_current_user),
):
    svc = SetupService(db, codec)
    try:
        result = await svc.setup_restaurant(
            identity.user_id,
            name=body.name,
            cuit=body.cuit,
            address=body.address,
            table_count=body.table_count,
        )
    except ServiceError as e:
        raise http_error(e)
    return SetupRestaurantRead.model_validate(result, from_attributes=True)
