"""Restaurant and branch service: owner-scoped CRUD.

Every lookup goes through get_owned_restaurant(), which is the single
ownership check the other services build on: missing → NotFoundError,
someone else's → ForbiddenError.
"""

import uuid
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tablecall.db.models import Branch, Restaurant, ServiceRequest, Table
from tablecall.services.errors import ForbiddenError, NotFoundError, parse_uuid


class RestaurantService:
    """Business logic for restaurants and their branches."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Ownership ──────────────────────────────────────

    async def get_owned_restaurant(
        self, restaurant_id: uuid.UUID, user_id: str
    ) -> Restaurant:
        restaurant = await self.db.get(Restaurant, restaurant_id)
        if not restaurant:
            raise NotFoundError("Restaurant not found")
        if restaurant.user_id != parse_uuid(user_id, "user"):
            raise ForbiddenError("You don't have access to this restaurant")
        return restaurant

    # ─── Restaurants ────────────────────────────────────

    async def create_restaurant(
        self,
        user_id: str,
        name: str,
        cuit: str = "",
        description: Optional[str] = None,
    ) -> Restaurant:
        restaurant = Restaurant(
            user_id=parse_uuid(user_id, "user"),
            name=name,
            cuit=cuit,
            description=description,
        )
        self.db.add(restaurant)
        await self.db.commit()
        return restaurant

    async def list_restaurants(self, user_id: str) -> list[Restaurant]:
        result = await self.db.execute(
            select(Restaurant)
            .where(Restaurant.user_id == parse_uuid(user_id, "user"))
            .order_by(Restaurant.name)
        )
        return list(result.scalars().all())

    async def update_restaurant(
        self,
        restaurant_id: uuid.UUID,
        user_id: str,
        *,
        name: Optional[str] = None,
        cuit: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Restaurant:
        restaurant = await self.get_owned_restaurant(restaurant_id, user_id)
        if name is not None:
            restaurant.name = name
        if cuit is not None:
            restaurant.cuit = cuit
        if description is not None:
            restaurant.description = description
        await self.db.commit()
        return restaurant

    async def delete_restaurant(self, restaurant_id: uuid.UUID, user_id: str) -> None:
        """Delete a restaurant with its branches, tables and requests."""
        restaurant = await self.get_owned_restaurant(restaurant_id, user_id)
        await self.db.execute(
            delete(ServiceRequest).where(ServiceRequest.restaurant_id == restaurant.id)
        )
        await self.db.execute(delete(Table).where(Table.restaurant_id == restaurant.id))
        await self.db.execute(delete(Branch).where(Branch.restaurant_id == restaurant.id))
        await self.db.delete(restaurant)
        await self.db.commit()

    # ─── Branches ───────────────────────────────────────

    async def create_branch(
        self,
        restaurant_id: uuid.UUID,
        user_id: str,
        address: str,
        description: Optional[str] = None,
    ) -> Branch:
        restaurant = await self.get_owned_restaurant(restaurant_id, user_id)
        branch = Branch(
            restaurant_id=restaurant.id,
            address=address,
            description=description,
            is_active=True,
        )
        self.db.add(branch)
        await self.db.commit()
        return branch

    async def get_branch(self, branch_id: uuid.UUID, user_id: str) -> Branch:
        branch = await self.db.get(Branch, branch_id)
        if not branch:
            raise NotFoundError("Branch not found")
        await self.get_owned_restaurant(branch.restaurant_id, user_id)
        return branch

    async def list_branches(
        self, restaurant_id: uuid.UUID, user_id: str
    ) -> list[Branch]:
        await self.get_owned_restaurant(restaurant_id, user_id)
        result = await self.db.execute(
            select(Branch)
            .where(Branch.restaurant_id == restaurant_id)
            .order_by(Branch.created_at)
        )
        return list(result.scalars().all())

    async def update_branch(
        self,
        branch_id: uuid.UUID,
        user_id: str,
        *,
        address: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Branch:
        branch = await self.get_branch(branch_id, user_id)
        if address is not None:
            branch.address = address
        if description is not None:
            branch.description = description
        if is_active is not None:
            branch.is_active = is_active
        await self.db.commit()
        return branch

    async def delete_branch(self, branch_id: uuid.UUID, user_id: str) -> None:
        """Delete a branch with its tables and requests."""
        branch = await self.get_branch(branch_id, user_id)
        await self.db.execute(
            delete(ServiceRequest).where(ServiceRequest.branch_id == branch.id)
        )
        await self.db.execute(delete(Table).where(Table.branch_id == branch.id))
        await self.db.delete(branch)
        await self.db.commit()
