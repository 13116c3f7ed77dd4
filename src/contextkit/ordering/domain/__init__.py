from .events import OrderCancelled, OrderCreated, OrderPaid, OrderShipped, OrderSubmitted
from .factory import CreateOrderData, CreateOrderItemData, OrderFactory
from .model import Order, OrderItem
from .values import Address, OrderId, OrderItemId, OrderStatus

__all__ = [
    "Address",
    "CreateOrderData",
    "CreateOrderItemData",
    "Order",
    "OrderCancelled",
    "OrderCreated",
    "OrderFactory",
    "OrderId",
    "OrderItem",
    "OrderItemId",
    "OrderPaid",
    "OrderShipped",
    "OrderStatus",
    "OrderSubmitted",
]
