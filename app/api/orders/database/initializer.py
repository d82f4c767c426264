from app.api.orders.models.model_order import OrderModel
from app.database.domain.base import DomainInitializer


class OrdersInitializer(DomainInitializer):
    """Orders reference accounts, so this domain is registered after it."""

    def get_domain_name(self) -> str:
        return "orders"

    def get_tables(self):
        return [OrderModel.__table__]
