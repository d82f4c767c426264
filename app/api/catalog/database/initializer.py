"""
Catalog domain initializer: product tables and the sample menu.
"""
import logging
from decimal import Decimal

from app.config.settings import SEED_SAMPLE_MENU
from app.database.db_connection import open_session
from app.database.domain.base import DomainInitializer
from app.api.catalog.models.model_product import (
    CustomizationOptionModel,
    OptionChoiceModel,
    ProductModel,
)
from app.api.catalog.repositories.repo_product import ProductRepository

logger = logging.getLogger("storefront.database")


def _variant(option_id, name, choices, required=True):
    return {
        "id": option_id, "name": name, "required": required, "multi_select": False,
        "min_selections": None, "max_selections": 1, "choices": choices,
    }


def _modifier(option_id, name, choices, max_selections, min_selections=0, required=False):
    return {
        "id": option_id, "name": name, "required": required, "multi_select": True,
        "min_selections": min_selections, "max_selections": max_selections, "choices": choices,
    }


def _choice(choice_id, name, adjustment="0", default=False):
    return {"id": choice_id, "name": name, "price_adjustment": Decimal(adjustment), "is_default": default}


SAMPLE_MENU = [
    {
        "id": "p1", "name": "Buffalo Wings", "category": "starters", "base_price": Decimal("11.99"),
        "description": "Crispy wings tossed in your choice of sauce",
        "options": [
            _variant("c1", "Wing Sauce", [
                _choice("c1-1", "Buffalo", default=True),
                _choice("c1-2", "BBQ"),
                _choice("c1-3", "Honey Garlic", "0.50"),
                _choice("c1-4", "Extra Hot", "0.50"),
            ]),
            _variant("c2", "Quantity", [
                _choice("c2-1", "6 Wings", default=True),
                _choice("c2-2", "12 Wings", "6.99"),
                _choice("c2-3", "24 Wings", "12.99"),
            ]),
        ],
    },
    {
        "id": "p2", "name": "French Onion Soup", "category": "starters", "base_price": Decimal("8.99"),
        "description": "Caramelized onions, beef broth, gruyere crouton",
        "options": [],
    },
    {
        "id": "p3", "name": "Loaded Nachos", "category": "starters", "base_price": Decimal("10.99"),
        "description": "Tortilla chips, cheese, jalapenos, pico de gallo",
        "options": [
            _modifier("c4", "Protein Add-ons", [
                _choice("c4-1", "Grilled Chicken", "3.99"),
                _choice("c4-2", "Ground Beef", "4.99"),
                _choice("c4-3", "Pulled Pork", "4.99"),
            ], max_selections=2),
        ],
    },
    {
        "id": "p4", "name": "Classic Cheeseburger", "category": "burgers", "base_price": Decimal("14.99"),
        "description": "Beef patty, cheddar, lettuce, tomato, house sauce",
        "options": [
            _variant("c5", "Doneness", [
                _choice("c5-1", "Medium Rare"),
                _choice("c5-2", "Medium", default=True),
                _choice("c5-3", "Well Done"),
            ]),
            _modifier("c6", "Extra Toppings", [
                _choice("c6-1", "Extra Cheese", "1.50"),
                _choice("c6-2", "Bacon", "2.99"),
                _choice("c6-3", "Avocado", "2.49"),
                _choice("c6-4", "Fried Egg", "1.99"),
                _choice("c6-5", "Mushrooms", "1.49"),
            ], max_selections=5),
            _variant("c7", "Side", [
                _choice("c7-1", "French Fries", default=True),
                _choice("c7-2", "Sweet Potato Fries", "1.99"),
                _choice("c7-3", "Onion Rings", "2.49"),
                _choice("c7-4", "Side Salad", "1.49"),
            ]),
        ],
    },
    {
        "id": "p7", "name": "Margherita Pizza", "category": "pizzas", "base_price": Decimal("13.99"),
        "description": "San Marzano tomato, fresh mozzarella, basil",
        "options": [
            _variant("c10", "Size", [
                _choice("c10-1", 'Small (10")', "-3.00"),
                _choice("c10-2", 'Medium (12")', default=True),
                _choice("c10-3", 'Large (14")', "4.00"),
                _choice("c10-4", 'Extra Large (16")', "7.00"),
            ]),
            _variant("c11", "Crust Type", [
                _choice("c11-1", "Regular Crust", default=True),
                _choice("c11-2", "Thin Crust"),
                _choice("c11-3", "Thick Crust", "1.99"),
                _choice("c11-4", "Stuffed Crust", "3.99"),
            ]),
            _modifier("c12", "Extra Toppings", [
                _choice("c12-1", "Extra Cheese", "2.99"),
                _choice("c12-2", "Pepperoni", "2.49"),
                _choice("c12-3", "Mushrooms", "1.99"),
                _choice("c12-4", "Olives", "1.99"),
            ], max_selections=8),
        ],
    },
    {
        "id": "p8", "name": "Chocolate Lava Cake", "category": "desserts", "base_price": Decimal("8.99"),
        "description": "Warm chocolate cake with a molten center",
        "options": [],
    },
    {
        "id": "p10", "name": "Fresh Lemonade", "category": "beverages", "base_price": Decimal("4.99"),
        "description": "Squeezed to order",
        "options": [
            _variant("c13", "Flavor", [
                _choice("c13-1", "Classic", default=True),
                _choice("c13-2", "Strawberry", "0.99"),
                _choice("c13-3", "Mint", "0.99"),
            ], required=False),
            _variant("c14", "Size", [
                _choice("c14-1", "Small", "-1.00"),
                _choice("c14-2", "Medium", default=True),
                _choice("c14-3", "Large", "1.50"),
            ]),
        ],
    },
    {
        "id": "p11", "name": "Cold Brew Coffee", "category": "beverages", "base_price": Decimal("4.99"),
        "description": "Steeped for 18 hours",
        "options": [
            _variant("c15", "Size", [
                _choice("c15-1", "Small", "-1.00"),
                _choice("c15-2", "Medium", default=True),
                _choice("c15-3", "Large", "1.50"),
            ]),
            _modifier("c16", "Add-ons", [
                _choice("c16-1", "Extra Shot", "1.50"),
                _choice("c16-2", "Vanilla Syrup", "0.75"),
                _choice("c16-3", "Caramel Syrup", "0.75"),
                _choice("c16-4", "Almond Milk", "0.60"),
            ], max_selections=3),
        ],
    },
]


def build_product(entry: dict) -> ProductModel:
    product = ProductModel(
        id=entry["id"],
        name=entry["name"],
        description=entry.get("description"),
        category=entry.get("category"),
        base_price=entry["base_price"],
        has_customization=bool(entry["options"]),
        available=True,
    )
    for position, opt in enumerate(entry["options"]):
        option = CustomizationOptionModel(
            id=opt["id"],
            name=opt["name"],
            required=opt["required"],
            multi_select=opt["multi_select"],
            min_selections=opt["min_selections"],
            max_selections=opt["max_selections"],
            position=position,
        )
        option.choices = [
            OptionChoiceModel(position=i, **choice) for i, choice in enumerate(opt["choices"])
        ]
        product.options.append(option)
    return product


class CatalogInitializer(DomainInitializer):

    def get_domain_name(self) -> str:
        return "catalog"

    def get_tables(self):
        return [
            ProductModel.__table__,
            CustomizationOptionModel.__table__,
            OptionChoiceModel.__table__,
        ]

    def initialize_data(self) -> None:
        if not SEED_SAMPLE_MENU:
            return
        db = open_session()
        try:
            repo = ProductRepository(db)
            if repo.count() > 0:
                logger.info("Catalog already populated, skipping sample menu.")
                return
            for entry in SAMPLE_MENU:
                db.add(build_product(entry))
            db.commit()
            logger.info("Sample menu seeded with %s products.", len(SAMPLE_MENU))
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
