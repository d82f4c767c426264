from pydantic import ConfigDict
from sqlalchemy import Column, String, Boolean, DateTime, Numeric, Integer, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.database.db_connection import Base
from app.utils.database_utils import now_trimmed


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(40), primary_key=True)
    name = Column(String(120), nullable=False)
    description = Column(String(255), nullable=True)
    category = Column(String(60), nullable=True, index=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    has_customization = Column(Boolean, nullable=False, default=False)
    available = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=now_trimmed, nullable=False)
    updated_at = Column(DateTime, default=now_trimmed, onupdate=now_trimmed, nullable=False)

    options = relationship(
        "CustomizationOptionModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="CustomizationOptionModel.position",
    )

    model_config = ConfigDict(from_attributes=True)


class CustomizationOptionModel(Base):
    """Variant (single choice) or modifier (multi choice) group of a product."""
    __tablename__ = "customization_options"
    __table_args__ = (
        Index("idx_customization_options_product", "product_id", "position"),
    )

    id = Column(String(40), primary_key=True)
    product_id = Column(String(40), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    required = Column(Boolean, nullable=False, default=False)
    multi_select = Column(Boolean, nullable=False, default=False)
    min_selections = Column(Integer, nullable=True)
    max_selections = Column(Integer, nullable=True)
    position = Column(Integer, nullable=False, default=0)

    product = relationship("ProductModel", back_populates="options")
    choices = relationship(
        "OptionChoiceModel",
        back_populates="option",
        cascade="all, delete-orphan",
        order_by="OptionChoiceModel.position",
    )

    model_config = ConfigDict(from_attributes=True)


class OptionChoiceModel(Base):
    __tablename__ = "option_choices"

    id = Column(String(40), primary_key=True)
    option_id = Column(String(40), ForeignKey("customization_options.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    price_adjustment = Column(Numeric(10, 2), nullable=False, default=0)
    is_default = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)

    option = relationship("CustomizationOptionModel", back_populates="choices")

    model_config = ConfigDict(from_attributes=True)
