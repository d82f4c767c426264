from fastapi import Depends
from sqlalchemy.orm import Session

from app.database.db_connection import get_db
from app.api.catalog.contracts.catalog_contract import ICatalogContract
from app.api.catalog.adapters.catalog_adapter import CatalogAdapter


def get_catalog_contract(db: Session = Depends(get_db)) -> ICatalogContract:
    return CatalogAdapter(db)
