"""
Coordinates database start-up across the registered domains.
"""
import logging

from .registry import get_registry

logger = logging.getLogger("storefront.database")


class DatabaseOrchestrator:
    """
    Runs every registered domain initializer in registration order
    (tables first, then seed data). A failing domain aborts start-up.
    """

    def __init__(self):
        self.registry = get_registry()

    def initialize_domains(self) -> None:
        initializers = self.registry.get_all()

        if not initializers:
            logger.warning("No domain registered for initialization.")
            return

        logger.info("Initializing %s domain(s)...", len(initializers))

        for initializer in initializers:
            try:
                initializer.initialize()
            except Exception as e:
                logger.error("Error initializing domain %s: %s", initializer.get_domain_name(), e, exc_info=True)
                raise

    def initialize(self) -> None:
        logger.info("Starting database initialization...")
        self.initialize_domains()
        logger.info("Database initialized.")
