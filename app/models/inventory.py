"""Stock of blades, bits and small tools kept at the shop.

Units leave stock by being assigned to an operator, which creates an
``equipment`` row for the serialized unit. Every quantity change is logged
to ``inventory_transactions``.
"""
from sqlalchemy import Column, String, DateTime, Text, Integer, Float, ForeignKey, CheckConstraint
import uuid

from app.database import Base
from app.utils.serialization import utcnow


def _uuid() -> str:
    return str(uuid.uuid4())


class Inventory(Base):
    """A stocked item type, counted rather than serialized."""

    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("quantity_in_stock >= 0", name="ck_inventory_stock_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    category = Column(String(100), index=True)  # blade, bit, tool, part
    manufacturer = Column(String(100))
    model_number = Column(String(100))
    size = Column(String(50))
    equipment_for = Column(String(100))  # equipment type the item fits

    # Stock levels
    quantity_in_stock = Column(Integer, nullable=False, default=0)
    quantity_assigned = Column(Integer, nullable=False, default=0)
    reorder_level = Column(Integer, nullable=False, default=0)

    unit_price = Column(Float)
    location = Column(String(100))
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Inventory {self.name} ({self.quantity_in_stock} in stock)>"

    @property
    def needs_reorder(self) -> bool:
        return (self.quantity_in_stock or 0) <= (self.reorder_level or 0)


class InventoryTransaction(Base):
    """Audit trail for stock movements."""

    __tablename__ = "inventory_transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    inventory_id = Column(String(36), ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_type = Column(String(30), nullable=False, index=True)  # add_stock, stock_added, assigned
    quantity_change = Column(Integer, nullable=False)
    quantity_before = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)

    operator_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"))
    performed_by = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"))
    serial_number = Column(String(100))
    equipment_id = Column(String(36), ForeignKey("equipment.id", ondelete="SET NULL"))
    notes = Column(Text)

    transaction_date = Column(DateTime(timezone=True), default=utcnow, index=True)

    def __repr__(self):
        return f"<InventoryTransaction {self.transaction_type} {self.quantity_change:+d} item={self.inventory_id}>"
