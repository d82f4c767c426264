"""
Database start-up: registers the domain initializers and runs them.
"""
from app.api.accounts.database.initializer import AccountsInitializer
from app.api.catalog.database.initializer import CatalogInitializer
from app.api.orders.database.initializer import OrdersInitializer
from app.database.domain.orchestrator import DatabaseOrchestrator
from app.database.domain.registry import get_registry


def register_domains() -> None:
    registry = get_registry()
    # orders reference accounts, so accounts go first
    for initializer in (CatalogInitializer(), AccountsInitializer(), OrdersInitializer()):
        if registry.get(initializer.get_domain_name()) is None:
            registry.register(initializer)


def initialize_database() -> None:
    register_domains()
    DatabaseOrchestrator().initialize()
