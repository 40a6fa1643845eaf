from enum import Enum

class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"  # Staged while the customer pays
    PENDING = "pending"
    PROCESSING = "processing"            # Paid, waiting for the store
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
