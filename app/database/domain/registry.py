"""
Registry of domain initializers.
"""
from typing import Dict, List, Optional
import logging

from .base import DomainInitializer

logger = logging.getLogger("storefront.database")


class DomainRegistry:
    """Keeps initializers in registration order, one per domain name."""

    def __init__(self):
        self._initializers: Dict[str, DomainInitializer] = {}

    def register(self, initializer: DomainInitializer) -> None:
        domain_name = initializer.get_domain_name()
        if domain_name in self._initializers:
            logger.warning("Domain '%s' already registered. Replacing...", domain_name)
        self._initializers[domain_name] = initializer

    def get(self, domain_name: str) -> Optional[DomainInitializer]:
        return self._initializers.get(domain_name)

    def get_all(self) -> List[DomainInitializer]:
        return list(self._initializers.values())

    def clear(self) -> None:
        self._initializers.clear()

    def count(self) -> int:
        return len(self._initializers)


_registry = DomainRegistry()


def register_domain(initializer: DomainInitializer) -> None:
    _registry.register(initializer)


def get_registry() -> DomainRegistry:
    return _registry
