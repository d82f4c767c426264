from .model_order import OrderModel, OrderStatus, OrderStatusEnum

__all__ = ["OrderModel", "OrderStatus", "OrderStatusEnum"]
