"""Service request workflow: table calls from diners, and owners handling them.

Creating a request is the only path that feeds the notification hub:
1. Verify the QR proof (reject before touching the database)
2. Check restaurant → branch → table consistency
3. Persist and commit the request
4. Publish exactly one request.created event to the restaurant's dashboards

Publishing happens strictly after the commit, so a dashboard never sees an
event for a request that isn't stored. If the commit fails nothing is
published and the error propagates to the caller.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tablecall.db.models import (
    REQUEST_PENDING,
    Branch,
    Restaurant,
    ServiceRequest,
    Table,
)
from tablecall.qr import QRCodec
from tablecall.realtime.hub import Publisher
from tablecall.schemas.request import RequestCreatedEvent, ServiceRequestRead
from tablecall.services.errors import (
    InvalidInputError,
    InvalidQRCodeError,
    NotFoundError,
    parse_uuid,
)
from tablecall.services.restaurant_service import RestaurantService

logger = structlog.get_logger()


class RequestService:
    """Manages the service request lifecycle."""

    def __init__(self, db: AsyncSession, publisher: Publisher, codec: QRCodec):
        self.db = db
        self.publisher = publisher
        self.codec = codec
        self.restaurants = RestaurantService(db)

    # ─── Create (public, from a QR scan) ──────────────────

    async def create_request(
        self,
        *,
        restaurant_id: str,
        branch_id: str,
        table_id: str,
        table_number: int,
        proof: str,
    ) -> ServiceRequest:
        """Create a pending request for a table and notify the dashboards."""
        if not self.codec.verify(restaurant_id, branch_id, table_id, table_number, proof):
            logger.info(
                "request.qr_rejected",
                restaurant_id=restaurant_id,
                table_id=table_id,
            )
            raise InvalidQRCodeError("Invalid QR code")

        r_id = parse_uuid(restaurant_id, "restaurant")
        b_id = parse_uuid(branch_id, "branch")
        t_id = parse_uuid(table_id, "table")

        restaurant = await self.db.get(Restaurant, r_id)
        if not restaurant:
            raise NotFoundError("Restaurant not found")

        branch = await self.db.get(Branch, b_id)
        if not branch:
            raise NotFoundError("Branch not found")
        if branch.restaurant_id != restaurant.id:
            raise InvalidInputError("Branch does not belong to restaurant")
        if not branch.is_active:
            raise InvalidInputError("Branch is not active")

        table = await self.db.get(Table, t_id)
        if not table:
            raise NotFoundError("Table not found")
        if table.branch_id != branch.id or table.restaurant_id != restaurant.id:
            raise InvalidInputError("Table does not belong to branch")
        if not table.is_active:
            raise InvalidInputError("Table is not active")
        if table.number != table_number:
            raise InvalidInputError("Table number does not match")

        request = ServiceRequest(
            restaurant_id=restaurant.id,
            branch_id=branch.id,
            table_id=table.id,
            table_number=table.number,
            status=REQUEST_PENDING,
        )
        self.db.add(request)
        await self.db.commit()

        logger.info(
            "request.created",
            request_id=str(request.id),
            restaurant_id=str(restaurant.id),
            table_number=request.table_number,
        )
        self.publisher.publish(
            str(restaurant.id),
            RequestCreatedEvent(request=ServiceRequestRead.model_validate(request)),
        )
        return request

    # ─── Owner-side reads ─────────────────────────────────

    async def get_request(self, request_id: uuid.UUID, user_id: str) -> ServiceRequest:
        request = await self.db.get(ServiceRequest, request_id)
        if not request:
            raise NotFoundError("Request not found")
        await self.restaurants.get_owned_restaurant(request.restaurant_id, user_id)
        return request

    async def list_requests(
        self,
        restaurant_id: uuid.UUID,
        user_id: str,
        *,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> list[ServiceRequest]:
        """Requests for a restaurant, newest first."""
        await self.restaurants.get_owned_restaurant(restaurant_id, user_id)
        q = (
            select(ServiceRequest)
            .where(ServiceRequest.restaurant_id == restaurant_id)
            .order_by(ServiceRequest.created_at.desc())
            .limit(limit)
        )
        if status:
            q = q.where(ServiceRequest.status == status)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    # ─── Owner-side writes ────────────────────────────────

    async def update_status(
        self, request_id: uuid.UUID, user_id: str, status: str
    ) -> ServiceRequest:
        request = await self.get_request(request_id, user_id)
        request.status = status
        await self.db.commit()
        logger.info(
            "request.status_changed", request_id=str(request.id), status=status
        )
        return request

    async def delete_request(self, request_id: uuid.UUID, user_id: str) -> None:
        request = await self.get_request(request_id, user_id)
        await self.db.delete(request)
        await self.db.commit()
