# FILE: lotus_backend/services/catalog_service.py
import logging
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lotus_backend.core.database import Database
from lotus_backend.core.dialects import insert_ignore
from lotus_backend.core.errors import ItemNotFoundError, ValidationError
from lotus_backend.core.result import returns_result
from lotus_backend.models.item import Item
from lotus_backend.schemas.common import parse
from lotus_backend.schemas.items import ItemCreate, ItemOut

logger = logging.getLogger("lotus-rewards.catalog")


class ItemCatalog:
    """Registry of item definitions."""

    def __init__(self, db: Database):
        self.db = db

    # ----------------------------
    # In-transaction helpers
    # ----------------------------
    async def get_in(self, session: AsyncSession, item_id: str) -> Optional[Item]:
        return await session.get(Item, item_id)

    async def require_in(self, session: AsyncSession, item_id: str) -> Item:
        item = await self.get_in(session, item_id)
        if item is None:
            raise ItemNotFoundError(item_id=item_id)
        return item

    async def find_by_name_in(self, session: AsyncSession, name: str) -> Optional[Item]:
        return (await session.execute(select(Item).where(Item.name == name))).scalar_one_or_none()

    async def find_or_create_in(self, session: AsyncSession, spec: ItemCreate) -> Item:
        # Unique name + ON CONFLICT DO NOTHING: concurrent bootstraps converge on one row
        await session.execute(
            insert_ignore(
                self.db.dialect_name,
                Item.__table__,
                {
                    "name": spec.name,
                    "description": spec.description,
                    "icon_url": spec.icon_url,
                    "is_usable": spec.is_usable,
                },
                conflict_columns=["name"],
            )
        )
        item = await self.find_by_name_in(session, spec.name)
        if item is None:
            raise ItemNotFoundError(f"Item {spec.name!r} vanished after insert", name=spec.name)
        return item

    # ----------------------------
    # Public operations
    # ----------------------------
    async def find_by_id(self, item_id: str) -> Optional[ItemOut]:
        async def _read(session: AsyncSession):
            item = await self.get_in(session, item_id)
            return ItemOut.model_validate(item) if item else None

        return await self.db.transaction(_read)

    async def find_by_name(self, name: str) -> Optional[ItemOut]:
        async def _read(session: AsyncSession):
            item = await self.find_by_name_in(session, name)
            return ItemOut.model_validate(item) if item else None

        return await self.db.transaction(_read)

    async def find_or_create(self, spec: Any) -> ItemOut:
        spec = parse(ItemCreate, spec)

        async def _run(session: AsyncSession):
            return ItemOut.model_validate(await self.find_or_create_in(session, spec))

        return await self.db.transaction(_run)

    @returns_result
    async def create(self, spec: Any) -> ItemOut:
        spec = parse(ItemCreate, spec)

        async def _run(session: AsyncSession):
            if await self.find_by_name_in(session, spec.name):
                raise ValidationError(f"Item {spec.name!r} already exists", name=spec.name)
            item = Item(
                name=spec.name,
                description=spec.description,
                icon_url=spec.icon_url,
                is_usable=spec.is_usable,
            )
            session.add(item)
            await session.flush()
            logger.info(f"Created item {item.name} ({item.id})")
            return ItemOut.model_validate(item)

        return await self.db.transaction(_run)

    async def list_all(self) -> List[ItemOut]:
        async def _read(session: AsyncSession):
            rows = (await session.execute(select(Item).order_by(Item.created_at.asc()))).scalars().all()
            return [ItemOut.model_validate(i) for i in rows]

        return await self.db.transaction(_read)
