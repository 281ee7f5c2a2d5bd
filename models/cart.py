# cart is a per-user container of product lines that is checked out at once.
# Nothing is reserved while an item sits in the cart, so availability has to
# be checked again during checkout (see CartService.validate_stock)
from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, func

from models.base import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    # Derived from the cart items, recomputed on every mutation
    total_items = Column(Integer, nullable=False, default=0)
    total_amount = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())


class CartDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    total_items: int | None = 0
    total_amount: float | None = 0.0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class VariantSelectionDTO(BaseModel):
    label: str = Field(..., min_length=1)


class ColorSelectionDTO(BaseModel):
    name: str = Field(..., min_length=1)
    code: str | None = None


class AddToCartRequest(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1)
    variant: VariantSelectionDTO | None = None
    color: ColorSelectionDTO | None = None


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class CartLineDTO(BaseModel):
    """Cart item resolved against the current product for display."""
    product_id: int
    name: str
    price: float
    images: list[str] = Field(default_factory=list)
    variant: str | None = None
    color: str | None = None
    quantity: int
    unit_price: float
    line_total: float


class CartSnapshotDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    items: list[CartLineDTO] = Field(default_factory=list)
    total_items: int = 0
    total_amount: float = 0.0

    @classmethod
    def empty(cls, user_id: int | None = None) -> "CartSnapshotDTO":
        return cls(user_id=user_id)


class StockShortageDTO(BaseModel):
    product_id: int
    product_name: str
    variant: str | None = None
    color: str | None = None
    requested: int
    available: int
