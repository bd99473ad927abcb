"""
Inventory Service

Stock counts only ever change through a single UPDATE that does the
arithmetic in the database, so concurrent receipts and assignments cannot
lose units. Each movement is then logged to ``inventory_transactions``
inside a savepoint; a failed log entry is reported and does not undo the
stock change.
"""

from typing import Optional
import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import BadRequestError, ErrorCode, NotFoundError
from app.models.equipment import Equipment
from app.models.inventory import Inventory, InventoryTransaction
from app.models.profile import Profile
from app.utils.serialization import row_to_dict, utcnow

logger = logging.getLogger(__name__)


def inventory_to_response(item: Inventory) -> dict:
    data = row_to_dict(item)
    data["total_value"] = round((item.quantity_in_stock or 0) * (item.unit_price or 0), 2)
    data["needs_reorder"] = item.needs_reorder
    return data


class InventoryService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, inventory_id: str) -> Inventory:
        item = await self.db.get(Inventory, inventory_id, populate_existing=True)
        if item is None:
            raise NotFoundError("Inventory item")
        return item

    async def list_items(self, category: Optional[str] = None, low_stock: bool = False) -> list[Inventory]:
        query = select(Inventory)
        if category:
            query = query.where(Inventory.category == category)
        if low_stock:
            query = query.where(Inventory.quantity_in_stock <= Inventory.reorder_level)
        result = await self.db.execute(query.order_by(Inventory.created_at.desc()))
        return list(result.scalars().all())

    async def _log(self, **fields) -> Optional[InventoryTransaction]:
        """Write a transaction row in a savepoint of the caller's transaction."""
        entry = InventoryTransaction(**fields)
        await self.db.flush()
        try:
            async with self.db.begin_nested():
                self.db.add(entry)
        except SQLAlchemyError as e:
            logger.warning(
                f"Failed to log {fields['transaction_type']} for inventory {fields['inventory_id']}: {e}"
            )
            return None
        return entry

    async def create(self, data: dict, actor: Profile) -> Inventory:
        item = Inventory(**data)
        self.db.add(item)
        await self.db.flush()

        if item.quantity_in_stock:
            await self._log(
                inventory_id=item.id,
                transaction_type="add_stock",
                quantity_change=item.quantity_in_stock,
                quantity_before=0,
                quantity_after=item.quantity_in_stock,
                performed_by=actor.id,
                notes=f"Initial stock added: {item.quantity_in_stock} units",
            )
        await self.db.commit()

        logger.info(f"Inventory item {item.id} ({item.name}) created by {actor.id}")
        return item

    async def add_stock(
        self,
        inventory_id: str,
        quantity: int,
        actor: Profile,
        notes: Optional[str] = None,
    ) -> Inventory:
        if quantity < 1:
            raise BadRequestError("Quantity must be at least 1")

        result = await self.db.execute(
            update(Inventory)
            .where(Inventory.id == inventory_id)
            .values(
                quantity_in_stock=func.coalesce(Inventory.quantity_in_stock, 0) + quantity,
                updated_at=utcnow(),
            )
            .returning(Inventory.quantity_in_stock)
            .execution_options(synchronize_session=False)
        )
        after = result.scalar_one_or_none()
        if after is None:
            raise NotFoundError("Inventory item")

        await self._log(
            inventory_id=inventory_id,
            transaction_type="stock_added",
            quantity_change=quantity,
            quantity_before=after - quantity,
            quantity_after=after,
            performed_by=actor.id,
            notes=notes or f"Added {quantity} units to stock",
        )
        await self.db.commit()

        logger.info(f"Added {quantity} units to inventory {inventory_id} (now {after}) by {actor.id}")
        return await self.get(inventory_id)

    async def assign(
        self,
        inventory_id: str,
        operator_id: str,
        serial_number: str,
        actor: Profile,
        notes: Optional[str] = None,
    ) -> Equipment:
        """
        Take one unit out of stock and register it as equipment held by the operator.

        The serial number must not already belong to a piece of equipment.
        """
        item = await self.get(inventory_id)
        operator = await self.db.get(Profile, operator_id)
        if operator is None:
            raise NotFoundError("Operator")

        result = await self.db.execute(
            select(Equipment.name).where(Equipment.serial_number == serial_number).limit(1)
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            raise BadRequestError(
                f'Serial number "{serial_number}" has already been used for {existing}. '
                f"Please use a unique serial number.",
                code=ErrorCode.CONFLICT,
            )

        result = await self.db.execute(
            update(Inventory)
            .where(Inventory.id == inventory_id, Inventory.quantity_in_stock > 0)
            .values(
                quantity_in_stock=Inventory.quantity_in_stock - 1,
                quantity_assigned=func.coalesce(Inventory.quantity_assigned, 0) + 1,
                updated_at=utcnow(),
            )
            .returning(Inventory.quantity_in_stock)
            .execution_options(synchronize_session=False)
        )
        after = result.scalar_one_or_none()
        if after is None:
            raise BadRequestError(f"No {item.name} left in stock", code=ErrorCode.CONFLICT)

        equipment = Equipment(
            name=item.name,
            equipment_type=item.equipment_for or item.category,
            brand=item.manufacturer,
            model=item.model_number,
            serial_number=serial_number,
            status="in_use",
            assigned_to=operator.id,
            notes=notes,
        )
        self.db.add(equipment)
        await self.db.flush()

        await self._log(
            inventory_id=inventory_id,
            transaction_type="assigned",
            quantity_change=-1,
            quantity_before=after + 1,
            quantity_after=after,
            operator_id=operator.id,
            performed_by=actor.id,
            serial_number=serial_number,
            equipment_id=equipment.id,
            notes=notes or f"Assigned to {operator.full_name or operator.email}",
        )
        await self.db.commit()

        logger.info(
            f"Inventory {inventory_id} unit {serial_number} assigned to {operator.id} "
            f"as equipment {equipment.id} ({after} left)"
        )
        return equipment

    async def history(
        self,
        transaction_type: Optional[str] = None,
        inventory_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[dict]:
        """Transactions newest first, with operator and actor names attached."""
        operator = Profile.__table__.alias("operator")
        actor = Profile.__table__.alias("actor")
        query = (
            select(
                InventoryTransaction,
                Inventory.name,
                operator.c.full_name.label("operator_name"),
                actor.c.full_name.label("performed_by_name"),
            )
            .join(Inventory, Inventory.id == InventoryTransaction.inventory_id)
            .outerjoin(operator, operator.c.id == InventoryTransaction.operator_id)
            .outerjoin(actor, actor.c.id == InventoryTransaction.performed_by)
        )
        if transaction_type and transaction_type != "all":
            query = query.where(InventoryTransaction.transaction_type == transaction_type)
        if inventory_id:
            query = query.where(InventoryTransaction.inventory_id == inventory_id)

        result = await self.db.execute(
            query.order_by(InventoryTransaction.transaction_date.desc()).limit(limit)
        )
        return [
            {
                **row_to_dict(entry),
                "inventory_name": item_name,
                "operator_name": operator_name,
                "performed_by_name": actor_name,
            }
            for entry, item_name, operator_name, actor_name in result.all()
        ]
