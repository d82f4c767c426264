from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.api.cart.services.service_cart_ledger import CartLedger
from app.api.catalog.contracts.catalog_contract import CustomizationOptionDTO, OptionChoiceDTO, ProductDTO
from app.api.catalog.schemas.schema_customization import ProductCustomization

SOUP = ProductDTO(id="p2", name="French Onion Soup", base_price=Decimal("8.99"), has_customization=False)
LEMONADE = ProductDTO(id="p10", name="Fresh Lemonade", base_price=Decimal("4.99"), has_customization=True)
LEMONADE_OPTIONS = [
    CustomizationOptionDTO(
        id="c14", name="Size", required=True, multi_select=False,
        choices=[
            OptionChoiceDTO(id="c14-1", name="Small", price_adjustment=Decimal("-1.00")),
            OptionChoiceDTO(id="c14-2", name="Medium", is_default=True),
            OptionChoiceDTO(id="c14-3", name="Large", price_adjustment=Decimal("1.50")),
        ],
    ),
]


def test_add_uses_base_price_without_customization():
    ledger = CartLedger()
    item = ledger.add_item(SOUP, 2)
    assert item.price == Decimal("8.99")
    assert item.total_price == Decimal("17.98")
    assert item.id.startswith("p2_")


def test_add_resolves_customized_price():
    ledger = CartLedger()
    custom = ProductCustomization(product_id="p10", selections={"c14": "c14-3"})
    item = ledger.add_item(LEMONADE, 3, custom, LEMONADE_OPTIONS)
    assert item.price == Decimal("6.49")
    assert item.total_price == Decimal("19.47")
    assert item.customization == custom


def test_identical_adds_stay_separate_lines():
    ledger = CartLedger()
    first = ledger.add_item(SOUP)
    second = ledger.add_item(SOUP)
    assert first.id != second.id
    assert len(ledger.items) == 2
    assert ledger.total_item_count == 2


def test_quantity_below_one_is_rejected_on_add():
    with pytest.raises(ValueError):
        CartLedger().add_item(SOUP, 0)


def test_derived_totals_follow_the_lines():
    ledger = CartLedger()
    ledger.add_item(SOUP, 2)
    custom = ProductCustomization(product_id="p10", selections={"c14": "c14-1"})
    ledger.add_item(LEMONADE, 1, custom, LEMONADE_OPTIONS)

    assert ledger.total_item_count == sum(i.quantity for i in ledger.items) == 3
    assert ledger.subtotal == sum(i.total_price for i in ledger.items) == Decimal("21.97")


def test_update_quantity_recomputes_total():
    ledger = CartLedger()
    item = ledger.add_item(SOUP)
    updated = ledger.update_quantity(item.id, 4)
    assert updated.quantity == 4
    assert updated.total_price == Decimal("35.96")
    assert ledger.subtotal == Decimal("35.96")


def test_update_quantity_to_zero_is_a_no_op():
    ledger = CartLedger()
    item = ledger.add_item(SOUP, 2)
    ledger.update_quantity(item.id, 0)
    assert ledger.get_item(item.id).quantity == 2


def test_decrement_removes_the_line_at_zero():
    ledger = CartLedger()
    item = ledger.add_item(SOUP, 2)
    assert ledger.decrement(item.id).quantity == 1
    assert ledger.decrement(item.id) is None
    assert ledger.get_item(item.id) is None
    assert ledger.is_empty()


def test_remove_and_clear():
    ledger = CartLedger()
    a = ledger.add_item(SOUP)
    ledger.add_item(SOUP)
    assert ledger.remove_item(a.id) is True
    assert ledger.remove_item(a.id) is False
    ledger.clear()
    assert ledger.items == []
    assert ledger.subtotal == Decimal("0")


def test_cart_items_are_immutable():
    item = CartLedger().add_item(SOUP)
    with pytest.raises(ValidationError):
        item.quantity = 5
