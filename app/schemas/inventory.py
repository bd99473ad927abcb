"""Inventory schemas. Quantities are whole units."""

from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.types import OptionalStr


class InventoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    manufacturer: Optional[str] = Field(None, max_length=100)
    model_number: Optional[str] = Field(None, max_length=100)
    size: Optional[str] = Field(None, max_length=50)
    equipment_for: Optional[str] = Field(None, max_length=100)
    quantity_in_stock: int = Field(0, ge=0)
    reorder_level: int = Field(0, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    location: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class StockAddRequest(BaseModel):
    """Receive units into stock; the route requires quantity >= 1 (400)."""

    inventory_id: OptionalStr = None
    quantity: Optional[int] = None
    notes: Optional[str] = None


class InventoryAssignRequest(BaseModel):
    """Issue one serialized unit from stock to an operator."""

    inventory_id: OptionalStr = None
    operator_id: OptionalStr = None
    serial_number: OptionalStr = None
    notes: Optional[str] = None
