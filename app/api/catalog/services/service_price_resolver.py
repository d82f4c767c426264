from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from app.api.catalog.contracts.catalog_contract import CustomizationOptionDTO
from app.api.catalog.schemas.schema_customization import ProductCustomization, SelectionValue


def _as_choice_list(selection: SelectionValue | None) -> List[str]:
    if selection is None:
        return []
    if isinstance(selection, str):
        return [selection] if selection else []
    return [s for s in selection if s]


def _as_single_choice(selection: SelectionValue | None) -> Optional[str]:
    choices = _as_choice_list(selection)
    return choices[0] if choices else None


def _index_options(option_catalog: Iterable[CustomizationOptionDTO]) -> Dict[str, CustomizationOptionDTO]:
    return {o.id: o for o in option_catalog}


def resolve_unit_price(
    base_price: Decimal,
    customization: ProductCustomization | None,
    option_catalog: Sequence[CustomizationOptionDTO],
) -> Decimal:
    """
    Unit price of a product with its selections applied.

    Each selection is read through the option's declared `multi_select`:
    a variant adds the adjustment of its chosen choice, a modifier adds the
    adjustments of every selected choice. Option or choice ids missing from
    the catalog contribute nothing, so stale selections never fail the
    calculation. Negative adjustments are applied as-is and the result is
    not clamped.
    """
    price = Decimal(str(base_price))
    if customization is None or not customization.selections:
        return price

    options = _index_options(option_catalog)
    adjustment = Decimal("0")

    for option_id, selection in customization.selections.items():
        option = options.get(option_id)
        if option is None:
            continue

        if option.multi_select:
            chosen = _as_choice_list(selection)
        else:
            single = _as_single_choice(selection)
            chosen = [single] if single else []

        for choice_id in chosen:
            choice = option.find_choice(choice_id)
            if choice is not None:
                adjustment += Decimal(str(choice.price_adjustment))

    return price + adjustment


def build_default_customization(
    product_id: str,
    option_catalog: Sequence[CustomizationOptionDTO],
) -> ProductCustomization:
    """
    Selections pre-filled when a customizable product is opened.

    - Variant: the default choice, else the first choice when required.
    - Modifier: the default choices, else the first `min_selections` choices
      when required, else nothing.
    """
    selections: Dict[str, SelectionValue] = {}

    for option in option_catalog:
        if not option.multi_select:
            default = next((c for c in option.choices if c.is_default), None)
            if default is not None:
                selections[option.id] = default.id
            elif option.required and option.choices:
                selections[option.id] = option.choices[0].id
        else:
            defaults = [c.id for c in option.choices if c.is_default]
            if defaults:
                selections[option.id] = defaults
            elif option.required and option.min_selections:
                selections[option.id] = [c.id for c in option.choices[: option.min_selections]]
            else:
                selections[option.id] = []

    return ProductCustomization(product_id=product_id, selections=selections)


def select_single(customization: ProductCustomization, option_id: str, choice_id: str) -> ProductCustomization:
    selections = dict(customization.selections)
    selections[option_id] = choice_id
    return customization.model_copy(update={"selections": selections})


def toggle_multi(
    customization: ProductCustomization,
    option_id: str,
    choice_id: str,
    selected: bool,
) -> ProductCustomization:
    current = _as_choice_list(customization.selections.get(option_id))
    if selected:
        updated = current if choice_id in current else [*current, choice_id]
    else:
        updated = [c for c in current if c != choice_id]

    selections = dict(customization.selections)
    selections[option_id] = updated
    return customization.model_copy(update={"selections": selections})


def set_special_instructions(customization: ProductCustomization, instructions: str) -> ProductCustomization:
    return customization.model_copy(update={"special_instructions": instructions or None})


def validate_selections(
    customization: ProductCustomization,
    option_catalog: Sequence[CustomizationOptionDTO],
) -> Dict[str, str]:
    """
    Returns option id -> message for every option whose selection is not
    acceptable. Empty dict means the customization can be added to the cart.
    """
    errors: Dict[str, str] = {}

    for option in option_catalog:
        selection = customization.selections.get(option.id)

        if not option.multi_select:
            chosen = _as_single_choice(selection)
            if chosen is None:
                if option.required:
                    errors[option.id] = f"Please choose a {option.name.lower()}."
            elif option.find_choice(chosen) is None:
                errors[option.id] = f"Unknown choice for {option.name}."
            continue

        chosen_list = _as_choice_list(selection)
        minimum = option.min_selections or 0
        maximum = option.max_selections
        if option.required and len(chosen_list) < minimum:
            errors[option.id] = f"Choose at least {minimum} for {option.name}."
        elif maximum is not None and len(chosen_list) > maximum:
            errors[option.id] = f"Choose at most {maximum} for {option.name}."

    return errors
