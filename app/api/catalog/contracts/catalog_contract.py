from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, model_validator


class OptionChoiceDTO(BaseModel):
    id: str
    name: str
    price_adjustment: Decimal = Decimal("0")
    is_default: bool = False


class CustomizationOptionDTO(BaseModel):
    """
    Customization group of a product.

    - `multi_select=False`: variant, exactly one choice is picked (size, crust...).
    - `multi_select=True`: modifier, between `min_selections` and `max_selections`
      choices are picked (toppings, add-ons...).
    """
    id: str
    name: str
    required: bool = False
    multi_select: bool = False
    min_selections: Optional[int] = None
    max_selections: Optional[int] = None
    choices: List[OptionChoiceDTO] = []

    @model_validator(mode="after")
    def check_defaults(self):
        defaults = [c for c in self.choices if c.is_default]
        if not self.multi_select:
            if len(defaults) > 1:
                raise ValueError(f"Variant '{self.id}' flags more than one default choice")
        elif self.max_selections is not None and len(defaults) > self.max_selections:
            raise ValueError(
                f"Modifier '{self.id}' flags {len(defaults)} defaults but allows at most {self.max_selections}"
            )
        if (
            self.min_selections is not None
            and self.max_selections is not None
            and self.min_selections > self.max_selections
        ):
            raise ValueError(f"Option '{self.id}' has min_selections greater than max_selections")
        return self

    def find_choice(self, choice_id: str) -> Optional[OptionChoiceDTO]:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None


class ProductDTO(BaseModel):
    id: str
    name: str
    base_price: Decimal
    has_customization: bool = False
    description: Optional[str] = None
    category: Optional[str] = None
    available: bool = True


class ICatalogContract(ABC):
    """Read access to products and their customization options."""

    @abstractmethod
    def get_product(self, product_id: str) -> Optional[ProductDTO]:
        raise NotImplementedError

    @abstractmethod
    def list_products(self, category: Optional[str] = None, only_available: bool = True) -> List[ProductDTO]:
        raise NotImplementedError

    @abstractmethod
    def list_options(self, product_id: str) -> List[CustomizationOptionDTO]:
        """Options of a product in display order, choices included."""
        raise NotImplementedError
