"""Table service: tables, their numbers and their QR codes.

A table's QR URL embeds its own id, so ids are generated up front and the
URL is computed before the row is inserted. Changing a table's number
changes its proof, so the QR code is regenerated on renumbering.
"""

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tablecall.db.models import Branch, ServiceRequest, Table, new_uuid
from tablecall.qr import QRCodec
from tablecall.services.errors import ConflictError, NotFoundError
from tablecall.services.restaurant_service import RestaurantService

logger = structlog.get_logger()


def build_table(
    codec: QRCodec,
    branch: Branch,
    number: int,
    capacity: int = 4,
) -> Table:
    """New Table for a branch with its QR code already filled in."""
    table_id = new_uuid()
    return Table(
        id=table_id,
        restaurant_id=branch.restaurant_id,
        branch_id=branch.id,
        number=number,
        capacity=capacity,
        qr_code=codec.table_url(branch.restaurant_id, branch.id, table_id, number),
        is_active=True,
    )


class TableService:
    """Business logic for table management."""

    def __init__(self, db: AsyncSession, codec: QRCodec):
        self.db = db
        self.codec = codec
        self.restaurants = RestaurantService(db)

    async def _find_by_number(
        self, branch_id: uuid.UUID, number: int
    ) -> Optional[Table]:
        result = await self.db.execute(
            select(Table).where(Table.branch_id == branch_id, Table.number == number)
        )
        return result.scalars().first()

    async def _commit_numbers(self, message: str) -> None:
        """Commit, turning a lost race on (branch, number) into a conflict."""
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(message)

    # ─── Create ─────────────────────────────────────────

    async def create_table(
        self,
        branch_id: uuid.UUID,
        user_id: str,
        number: int,
        capacity: int = 4,
    ) -> Table:
        branch = await self.restaurants.get_branch(branch_id, user_id)
        if await self._find_by_number(branch.id, number):
            raise ConflictError(
                f"Table number {number} already exists for this branch"
            )

        table = build_table(self.codec, branch, number, capacity)
        self.db.add(table)
        await self._commit_numbers(
            f"Table number {number} already exists for this branch"
        )
        logger.info("table.created", table_id=str(table.id), number=number)
        return table

    async def bulk_create(
        self,
        branch_id: uuid.UUID,
        user_id: str,
        count: int,
        capacity: int = 4,
    ) -> list[Table]:
        """Create `count` tables numbered after the branch's highest number."""
        branch = await self.restaurants.get_branch(branch_id, user_id)
        result = await self.db.execute(
            select(func.max(Table.number)).where(Table.branch_id == branch.id)
        )
        start = result.scalar() or 0

        tables = [
            build_table(self.codec, branch, start + i, capacity)
            for i in range(1, count + 1)
        ]
        self.db.add_all(tables)
        await self._commit_numbers(
            "Table numbers changed while adding tables, try again"
        )
        logger.info(
            "table.bulk_created", branch_id=str(branch.id), count=len(tables)
        )
        return tables

    # ─── Read ───────────────────────────────────────────

    async def get_table(self, table_id: uuid.UUID, user_id: str) -> Table:
        table = await self.db.get(Table, table_id)
        if not table:
            raise NotFoundError("Table not found")
        await self.restaurants.get_owned_restaurant(table.restaurant_id, user_id)
        return table

    async def list_by_restaurant(
        self, restaurant_id: uuid.UUID, user_id: str
    ) -> list[Table]:
        await self.restaurants.get_owned_restaurant(restaurant_id, user_id)
        result = await self.db.execute(
            select(Table)
            .where(Table.restaurant_id == restaurant_id)
            .order_by(Table.branch_id, Table.number)
        )
        return list(result.scalars().all())

    async def list_by_branch(
        self, branch_id: uuid.UUID, user_id: str
    ) -> list[Table]:
        await self.restaurants.get_branch(branch_id, user_id)
        result = await self.db.execute(
            select(Table).where(Table.branch_id == branch_id).order_by(Table.number)
        )
        return list(result.scalars().all())

    # ─── Update / delete ────────────────────────────────

    async def update_table(
        self,
        table_id: uuid.UUID,
        user_id: str,
        *,
        number: Optional[int] = None,
        capacity: Optional[int] = None,
        is_active: Optional[bool] = None,
    ) -> Table:
        table = await self.get_table(table_id, user_id)

        if number is not None and number != table.number:
            existing = await self._find_by_number(table.branch_id, number)
            if existing and existing.id != table.id:
                raise ConflictError(
                    f"Table number {number} already exists for this branch"
                )
            table.number = number
            table.qr_code = self.codec.table_url(
                table.restaurant_id, table.branch_id, table.id, number
            )

        if capacity is not None:
            table.capacity = capacity
        if is_active is not None:
            table.is_active = is_active

        await self._commit_numbers(
            f"Table number {table.number} already exists for this branch"
        )
        return table

    async def delete_table(self, table_id: uuid.UUID, user_id: str) -> None:
        table = await self.get_table(table_id, user_id)
        await self.db.execute(
            delete(ServiceRequest).where(ServiceRequest.table_id == table.id)
        )
        await self.db.delete(table)
        await self.db.commit()
