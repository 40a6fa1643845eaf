# mall/models/__init__.py

from .user.user import User
from .order.order import Order
from .order.order_item import OrderItem
