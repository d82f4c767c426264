"""
Base class for per-context database initializers.
"""
from abc import ABC, abstractmethod
from typing import List
import logging

from sqlalchemy import Table

logger = logging.getLogger("storefront.database")


class DomainInitializer(ABC):
    """
    Each bounded context subclasses this to create its tables and,
    optionally, seed initial data.
    """

    @abstractmethod
    def get_domain_name(self) -> str:
        """Name used for logging and registry lookups (ex: "catalog", "orders")."""
        pass

    @abstractmethod
    def get_tables(self) -> List[Table]:
        """Tables owned by the context, parents before children."""
        pass

    def initialize_tables(self) -> None:
        from app.database.db_connection import engine

        tables = self.get_tables()
        if not tables:
            logger.warning("No tables declared for domain '%s'.", self.get_domain_name())
            return

        for table in tables:
            table.create(engine, checkfirst=True)
            logger.debug("Table %s created/verified", table.name)

    def initialize_data(self) -> None:
        """Seeds initial data. Default: nothing."""
        pass

    def validate(self) -> bool:
        return True

    def initialize(self) -> None:
        logger.info("Initializing domain %s...", self.get_domain_name())
        try:
            self.initialize_tables()
            self.initialize_data()

            if self.validate():
                logger.info("Domain %s initialized.", self.get_domain_name())
            else:
                logger.warning("Domain %s initialized but validation failed.", self.get_domain_name())
        except Exception as e:
            logger.error("Error initializing domain %s: %s", self.get_domain_name(), e, exc_info=True)
            raise
