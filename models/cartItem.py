from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint

from models.base import Base


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False)
    # NULL when the product is bought without a variant / color selection.
    # (product, variant, color) is unique per cart, enforced by CartService merging
    variant_label = Column(String, nullable=True)
    color_name = Column(String, nullable=True)

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_quantity_positive'),
    )


class CartItemDTO(BaseModel):
    id: int | None = None
    cart_id: int | None = None
    product_id: int | None = None
    quantity: int | None = None
    variant_label: str | None = None
    color_name: str | None = None

    def matches(self, product_id: int, variant_label: str | None, color_name: str | None) -> bool:
        return (self.product_id == product_id
                and (self.variant_label or None) == (variant_label or None)
                and (self.color_name or None) == (color_name or None))
