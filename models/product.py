from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, CheckConstraint, \
    UniqueConstraint, JSON, func
from sqlalchemy.orm import relationship

from models.base import Base


class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(String(2000), nullable=False, default="")
    price = Column(Float, nullable=False)
    # Aggregate stock, equals the sum of variant (and of color) stocks when those are populated
    stock = Column(Integer, nullable=False, default=0)
    # Monotonic sales counter used for best-seller ranking, floored at 0 on cancellations
    sold_count = Column(Integer, nullable=False, default=0)
    category = Column(String, nullable=True)
    brand = Column(String, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=func.now())

    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan",
                            lazy="selectin", order_by="ProductVariant.id")
    colors = relationship("ProductColor", back_populates="product", cascade="all, delete-orphan",
                          lazy="selectin", order_by="ProductColor.id")

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_product_price_non_negative'),
        CheckConstraint('stock >= 0', name='check_product_stock_non_negative'),
        CheckConstraint('sold_count >= 0', name='check_product_sold_count_non_negative'),
    )


class ProductVariant(Base):
    __tablename__ = 'product_variants'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    label = Column(String, nullable=False)
    # Optional price override, falls back to Product.price
    price = Column(Float, nullable=True)
    stock = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="variants")

    __table_args__ = (
        UniqueConstraint('product_id', 'label', name='uq_product_variant_label'),
        CheckConstraint('stock >= 0', name='check_variant_stock_non_negative'),
        CheckConstraint('price IS NULL OR price >= 0', name='check_variant_price_non_negative'),
    )


class ProductColor(Base):
    __tablename__ = 'product_colors'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    code = Column(String, nullable=True)
    stock = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="colors")

    __table_args__ = (
        UniqueConstraint('product_id', 'name', name='uq_product_color_name'),
        CheckConstraint('stock >= 0', name='check_color_stock_non_negative'),
    )


class ProductVariantDTO(BaseModel):
    id: int | None = None
    product_id: int | None = None
    label: str
    price: float | None = None
    stock: int = 0


class ProductColorDTO(BaseModel):
    id: int | None = None
    product_id: int | None = None
    name: str
    code: str | None = None
    stock: int = 0


class ProductDTO(BaseModel):
    id: int | None = None
    name: str | None = None
    description: str | None = ""
    price: float | None = None
    stock: int | None = None
    sold_count: int | None = 0
    category: str | None = None
    brand: str | None = None
    images: list[str] = Field(default_factory=list)
    is_active: bool | None = True
    created_at: datetime | None = None
    variants: list[ProductVariantDTO] = Field(default_factory=list)
    colors: list[ProductColorDTO] = Field(default_factory=list)

    def get_variant(self, label: str | None) -> ProductVariantDTO | None:
        if not label:
            return None
        return next((variant for variant in self.variants if variant.label == label), None)

    def get_color(self, name: str | None) -> ProductColorDTO | None:
        if not name:
            return None
        return next((color for color in self.colors if color.name == name), None)
