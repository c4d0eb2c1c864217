from gamestore.models.user import User
from gamestore.models.order import Order
from gamestore.models.order_item import OrderItem
from gamestore.models.order_event import OrderEvent
