from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.api.catalog.models.model_product import (
    CustomizationOptionModel,
    ProductModel,
)


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, product_id: str) -> Optional[ProductModel]:
        return self.db.query(ProductModel).filter(ProductModel.id == product_id).first()

    def list(self, category: Optional[str] = None, only_available: bool = True) -> List[ProductModel]:
        stmt = select(ProductModel)
        if category:
            stmt = stmt.where(ProductModel.category == category)
        if only_available:
            stmt = stmt.where(ProductModel.available.is_(True))
        stmt = stmt.order_by(ProductModel.category, ProductModel.name)
        return self.db.execute(stmt).scalars().all()

    def list_options(self, product_id: str) -> List[CustomizationOptionModel]:
        stmt = (
            select(CustomizationOptionModel)
            .where(CustomizationOptionModel.product_id == product_id)
            .options(selectinload(CustomizationOptionModel.choices))
            .order_by(CustomizationOptionModel.position)
        )
        return self.db.execute(stmt).scalars().all()

    def count(self) -> int:
        return self.db.query(ProductModel).count()

    def add(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product
