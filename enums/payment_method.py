from enum import Enum


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    UPI = "upi"
    NET_BANKING = "net_banking"
    CASH_ON_DELIVERY = "cash_on_delivery"
    RAZORPAY = "razorpay"

    @property
    def is_gateway_routed(self) -> bool:
        """Every method except cash on delivery is settled through the payment gateway."""
        return self != PaymentMethod.CASH_ON_DELIVERY
