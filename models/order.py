from datetime import datetime

from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, String, Boolean, Text, JSON, func, \
    CheckConstraint, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship

from enums.order_source import OrderSource
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from models.orderItem import OrderItemDTO
from models.base import Base


class Order(Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING)

    # Monetary fields, computed by PricingService at order time
    items_price = Column(Float, nullable=False, default=0.0)
    tax_price = Column(Float, nullable=False, default=0.0)
    shipping_price = Column(Float, nullable=False, default=0.0)
    total_amount = Column(Float, nullable=False)

    # Payment info
    payment_method = Column(SQLEnum(PaymentMethod), nullable=False)
    payment_status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    payment_id = Column(String, nullable=True, unique=True)  # Gateway payment id, set after verification
    gateway_order_id = Column(String, nullable=True)

    # {"street", "city", "state", "country", "postal_code"}
    shipping_address = Column(JSON, nullable=False)
    source = Column(SQLEnum(OrderSource), nullable=False, default=OrderSource.SINGLE_PRODUCT)
    notes = Column(Text, nullable=True)
    tracking_number = Column(String, nullable=True)

    # True while the order quantities are subtracted from product stock.
    # Guards against decrementing twice and releasing stock that was never taken
    stock_committed = Column(Boolean, nullable=False, default=False)

    delivered_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan",
                         lazy="selectin", order_by="OrderItem.id")

    __table_args__ = (
        CheckConstraint('total_amount >= 0', name='check_order_total_amount_non_negative'),
        Index('ix_orders_user_created', 'user_id', 'created_at'),
    )


class ShippingAddressDTO(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)


class OrderDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    status: OrderStatus | None = None
    items: list[OrderItemDTO] = Field(default_factory=list)
    items_price: float | None = None
    tax_price: float | None = None
    shipping_price: float | None = None
    total_amount: float | None = None
    payment_method: PaymentMethod | None = None
    payment_status: PaymentStatus | None = None
    payment_id: str | None = None
    gateway_order_id: str | None = None
    shipping_address: ShippingAddressDTO | None = None
    source: OrderSource | None = None
    notes: str | None = None
    tracking_number: str | None = None
    stock_committed: bool | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderItemRequest(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)
    variant: str | None = None
    color: str | None = None


class PaymentInfoRequest(BaseModel):
    method: PaymentMethod


class CreateOrderRequest(BaseModel):
    """
    Purchase intent.

    Either a single product (product_id + quantity) or a list of cart-style
    items. Exclusivity is checked by OrderService so that the failure is
    reported like every other order validation error.
    """
    product_id: int | None = Field(None, gt=0)
    quantity: int | None = Field(None, ge=1)
    items: list[OrderItemRequest] | None = None
    shipping_address: ShippingAddressDTO
    payment_info: PaymentInfoRequest
    notes: str | None = Field(None, max_length=500)


class OrderDraftDTO(BaseModel):
    """
    Priced, unpersisted order exchanged with the client between payment
    intent creation and payment verification. The checksum binds the draft
    to the user and the gateway order, the server keeps no pending state.
    """
    user_id: int
    items: list[OrderItemDTO] = Field(..., min_length=1)
    shipping_address: ShippingAddressDTO
    payment_method: PaymentMethod
    source: OrderSource
    items_price: float
    tax_price: float
    shipping_price: float
    total_amount: float
    currency: str
    notes: str | None = None
    gateway_order_id: str | None = None
    checksum: str | None = None


class GatewayOrderDTO(BaseModel):
    id: str
    amount: int  # Minor currency units (paise / cents)
    currency: str
    receipt: str | None = None
    status: str | None = None


class PaymentIntentDTO(BaseModel):
    order_draft: OrderDraftDTO
    gateway_order: GatewayOrderDTO


class VerifyPaymentRequest(BaseModel):
    gateway_order_id: str = Field(..., min_length=1)
    gateway_payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)
    order_data: OrderDraftDTO


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    tracking_number: str | None = None


class OrderPageDTO(BaseModel):
    orders: list[OrderDTO] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20
