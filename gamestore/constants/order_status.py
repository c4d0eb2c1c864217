from enum import Enum


class OrderStatus(str, Enum):
    DRAFT = "draft"
    PAID = "paid"
    VERIFYING = "verifying"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    MERCADOPAGO = "mercadopago"
