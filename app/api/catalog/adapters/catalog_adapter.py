from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from app.api.catalog.contracts.catalog_contract import (
    CustomizationOptionDTO,
    ICatalogContract,
    OptionChoiceDTO,
    ProductDTO,
)
from app.api.catalog.models.model_product import CustomizationOptionModel, ProductModel
from app.api.catalog.repositories.repo_product import ProductRepository


class CatalogAdapter(ICatalogContract):
    """Catalog contract backed by the product tables."""

    def __init__(self, db: Session):
        self.repo = ProductRepository(db)

    def _product_to_dto(self, p: ProductModel) -> ProductDTO:
        return ProductDTO(
            id=p.id,
            name=p.name,
            base_price=p.base_price,
            has_customization=bool(p.has_customization),
            description=p.description,
            category=p.category,
            available=bool(p.available),
        )

    def _option_to_dto(self, o: CustomizationOptionModel) -> CustomizationOptionDTO:
        return CustomizationOptionDTO(
            id=o.id,
            name=o.name,
            required=bool(o.required),
            multi_select=bool(o.multi_select),
            min_selections=o.min_selections,
            max_selections=o.max_selections,
            choices=[
                OptionChoiceDTO(
                    id=c.id,
                    name=c.name,
                    price_adjustment=c.price_adjustment,
                    is_default=bool(c.is_default),
                )
                for c in o.choices
            ],
        )

    def get_product(self, product_id: str) -> Optional[ProductDTO]:
        p = self.repo.get_by_id(product_id)
        if not p:
            return None
        return self._product_to_dto(p)

    def list_products(self, category: Optional[str] = None, only_available: bool = True) -> List[ProductDTO]:
        return [self._product_to_dto(p) for p in self.repo.list(category, only_available)]

    def list_options(self, product_id: str) -> List[CustomizationOptionDTO]:
        return [self._option_to_dto(o) for o in self.repo.list_options(product_id)]
