from __future__ import annotations

import time
import uuid
from decimal import Decimal
from typing import List, Optional, Sequence

from app.api.catalog.contracts.catalog_contract import CustomizationOptionDTO, ProductDTO
from app.api.catalog.schemas.schema_customization import ProductCustomization
from app.api.catalog.services.service_price_resolver import resolve_unit_price
from app.api.cart.schemas.schema_cart import CartItem, CartOut
from app.utils.logger import logger


def _new_item_id(product_id: str) -> str:
    # product + millisecond timestamp, suffixed so two adds in the same ms never collide
    return f"{product_id}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class CartLedger:
    """
    Cart of one session.

    Every add creates its own line, even when the same product with the same
    customization is already in the cart; quantities are edited per line.
    """

    def __init__(self):
        self._items: List[CartItem] = []

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    @property
    def total_item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def subtotal(self) -> Decimal:
        return sum((item.total_price for item in self._items), Decimal("0"))

    def is_empty(self) -> bool:
        return not self._items

    def get_item(self, item_id: str) -> Optional[CartItem]:
        return next((item for item in self._items if item.id == item_id), None)

    def add_item(
        self,
        product: ProductDTO,
        quantity: int = 1,
        customization: ProductCustomization | None = None,
        option_catalog: Sequence[CustomizationOptionDTO] | None = None,
    ) -> CartItem:
        if quantity < 1:
            raise ValueError("quantity must be at least 1")

        if product.has_customization and customization is not None:
            unit_price = resolve_unit_price(product.base_price, customization, option_catalog or [])
        else:
            unit_price = Decimal(str(product.base_price))

        item = CartItem(
            id=_new_item_id(product.id),
            product_id=product.id,
            name=product.name,
            price=unit_price,
            quantity=quantity,
            customization=customization,
            total_price=unit_price * quantity,
        )
        self._items.append(item)
        logger.debug("[Cart] Added %s x%s at %s", product.id, quantity, unit_price)
        return item

    def update_quantity(self, item_id: str, new_quantity: int) -> Optional[CartItem]:
        """
        Replaces the quantity of a line. Quantities below 1 are ignored: taking
        a line to zero is done with `remove_item` (see `decrement`).
        """
        if new_quantity < 1:
            return self.get_item(item_id)

        for index, item in enumerate(self._items):
            if item.id == item_id:
                updated = item.model_copy(
                    update={"quantity": new_quantity, "total_price": item.price * new_quantity}
                )
                self._items[index] = updated
                return updated
        return None

    def decrement(self, item_id: str) -> Optional[CartItem]:
        """Quantity - 1, removing the line when it would reach zero."""
        item = self.get_item(item_id)
        if item is None:
            return None
        if item.quantity <= 1:
            self.remove_item(item_id)
            return None
        return self.update_quantity(item_id, item.quantity - 1)

    def remove_item(self, item_id: str) -> bool:
        before = len(self._items)
        self._items = [item for item in self._items if item.id != item_id]
        return len(self._items) < before

    def clear(self) -> None:
        self._items = []

    def snapshot(self) -> CartOut:
        return CartOut(
            items=self.items,
            total_item_count=self.total_item_count,
            subtotal=self.subtotal,
        )
