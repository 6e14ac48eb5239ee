"""Pytest configuration and shared fixtures for shopcore tests."""

from typing import Any

import pytest

from shopcore.catalog.models import (
    DomainFacets,
    PricingTier,
    ProductRecord,
    ScalarStock,
    VariantStock,
)
from shopcore.core.config import ShopcoreConfig, set_config


@pytest.fixture(autouse=True)
def _default_config():
    """Pin the global config to code defaults so tests never read local overrides."""
    config = ShopcoreConfig()
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def config(_default_config) -> ShopcoreConfig:
    return _default_config


def make_product(
    product_id: str = "p1",
    name: str = "Product",
    price: float = 100.0,
    stock: Any = 50,
    category: str = "General",
    **kwargs: Any,
) -> ProductRecord:
    """Build a ProductRecord; `stock` may be an int or a dict of variant counts."""
    if isinstance(stock, dict):
        stock_value = VariantStock(counts=dict(stock))
    else:
        stock_value = ScalarStock(count=stock)
    tiers = kwargs.pop("tiers", ())
    return ProductRecord(
        id=product_id,
        name=name,
        base_price=price,
        stock=stock_value,
        category=category,
        pricing_tiers=tuple(PricingTier(*t) for t in tiers),
        **kwargs,
    )


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def tiered_product() -> ProductRecord:
    """Butter chicken from the restaurant template: 450 / 420 / 399."""
    return make_product(
        "dish-1",
        name="Butter Chicken",
        price=450,
        stock=50,
        category="Main Course",
        tiers=[(1, 2, 450), (3, 5, 420), (6, None, 399)],
        facets=DomainFacets(dietary_types=("Non-Vegetarian",), cuisine="Indian", spice_level="Medium"),
    )


@pytest.fixture
def raw_restaurant_catalog():
    return [
        {
            "id": 1,
            "name": "Butter Chicken",
            "description": "Tender chicken in rich, creamy tomato-based curry.",
            "price": 450,
            "category": "Main Course",
            "stock": 50,
            "food_details": {
                "cuisine_type": "Indian",
                "dietary_type": ["Non-Vegetarian"],
                "spice_level": "Medium",
            },
            "pricing_tiers": '[{"min_quantity": 1, "max_quantity": 2, "price": 450},'
                             ' {"min_quantity": 3, "max_quantity": 5, "price": 420},'
                             ' {"min_quantity": 6, "max_quantity": null, "price": 399}]',
            "created_at": "2024-03-01T10:00:00",
        },
        {
            "id": 2,
            "name": "Margherita Pizza",
            "description": "Classic pizza with mozzarella and basil.",
            "price": 350,
            "category": "Main Course",
            "stock": 15,
            "food_details": '{"cuisine_type": "Italian", "dietary_type": ["Vegetarian"], "spice_level": "Mild"}',
            "created_at": "2024-04-01T10:00:00",
        },
        {
            "id": 3,
            "name": "Quinoa Salad",
            "description": "Fresh quinoa with roasted vegetables.",
            "price": 280,
            "sale_price": 250,
            "category": "Salads",
            "stock": 0,
            "food_details": {
                "cuisine_type": "Continental",
                "dietary_type": ["Vegan", "Gluten-Free"],
                "spice_level": None,
            },
            "created_at": "2024-02-01T10:00:00",
        },
    ]


@pytest.fixture
def raw_clothing_catalog():
    return [
        {
            "id": 11,
            "name": "Linen Shirt",
            "price": 8900,
            "sale_price": 6900,
            "category": "Clothing",
            "material": "Linen",
            "stock": {"XS": 5, "S": 12, "M": 8, "L": 15, "XL": 3},
        },
        {
            "id": 12,
            "name": "Wool Sweater",
            "price": 12900,
            "category": "Clothing",
            "material": "Wool",
            "sizes": ["S", "M", "L", "XL"],
            "stock": 40,
        },
    ]

