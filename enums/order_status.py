from enum import Enum


class OrderStatus(Enum):
    PENDING = "pending"          # Created, stock not yet committed
    PROCESSING = "processing"    # Paid or COD confirmed, stock committed
    SHIPPED = "shipped"          # Handed over to carrier
    DELIVERED = "delivered"      # Final
    CANCELLED = "cancelled"      # Final, stock released
