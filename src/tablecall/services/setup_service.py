"""Setup service: onboard a restaurant in one call.

Creates the restaurant, its first branch and N numbered tables (with QR
codes) in a single transaction: either everything exists afterwards or
nothing does.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from tablecall.db.models import Branch, Restaurant, Table, new_uuid
from tablecall.qr import QRCodec
from tablecall.services.errors import parse_uuid
from tablecall.services.table_service import build_table

logger = structlog.get_logger()


@dataclass
class SetupResult:
    restaurant: Restaurant
    branch: Branch
    tables: list[Table]


class SetupService:
    def __init__(self, db: AsyncSession, codec: QRCodec):
        self.db = db
        self.codec = codec

    async def setup_restaurant(
        self,
        user_id: str,
        *,
        name: str,
        cuit: str,
        address: str,
        table_count: int,
    ) -> SetupResult:
        restaurant = Restaurant(
            id=new_uuid(),
            user_id=parse_uuid(user_id, "user"),
            name=name,
            cuit=cuit,
        )
        branch = Branch(
            id=new_uuid(),
            restaurant_id=restaurant.id,
            address=address,
            is_active=True,
        )
        tables = [
            build_table(self.codec, branch, number)
            for number in range(1, table_count + 1)
        ]

        self.db.add(restaurant)
        self.db.add(branch)
        self.db.add_all(tables)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "setup.completed",
            restaurant_id=str(restaurant.id),
            branch_id=str(branch.id),
            tables=len(tables),
        )
        return SetupResult(restaurant=restaurant, branch=branch, tables=tables)
