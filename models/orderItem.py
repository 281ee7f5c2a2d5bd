from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, Float, String, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base import Base


class OrderItem(Base):
    __tablename__ = 'order_items'

    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_order_item_positive_quantity'),
        CheckConstraint('price >= 0', name='ck_order_item_non_negative_price'),
        Index('ix_order_items_order_id', 'order_id'),
        Index('ix_order_items_product_id', 'product_id'),
    )

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    # Snapshots taken at order time, never updated afterwards
    name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)
    # Stock pool the quantity was taken from
    variant_label = Column(String, nullable=True)
    color_name = Column(String, nullable=True)

    order = relationship("Order", back_populates="items")


class OrderItemDTO(BaseModel):
    id: int | None = None
    order_id: int | None = None
    product_id: int
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    variant_label: str | None = None
    color_name: str | None = None

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)
