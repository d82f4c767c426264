from app.api.catalog.models.model_product import (
    ProductModel,
    CustomizationOptionModel,
    OptionChoiceModel,
)

__all__ = ["ProductModel", "CustomizationOptionModel", "OptionChoiceModel"]
