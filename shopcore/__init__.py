"""
shopcore - shared catalog and cart engine for vendor storefronts

One engine behind the vendor dashboard and every storefront template:
- Stock normalization into scalar or per-variant stock
- Quantity-tiered price resolution
- Facet filtering, stable sorting and pagination
- A cart ledger with atomic, stock-checked mutations
"""

from shopcore.cart.ledger import CartLedger, CartLine
from shopcore.catalog.facets import FilterCriteria, PriceRange
from shopcore.catalog.sorting import SortSpec
from shopcore.core.config import ShopcoreConfig, get_config, set_config
from shopcore.core.engine import BrowseSession, CatalogEngine, QueryResult
from shopcore.data.catalog_repository import CatalogRepository

__all__ = [
    'CartLedger',
    'CartLine',
    'FilterCriteria',
    'PriceRange',
    'SortSpec',
    'ShopcoreConfig',
    'get_config',
    'set_config',
    'BrowseSession',
    'CatalogEngine',
    'QueryResult',
    'CatalogRepository',
]

__version__ = '0.1.0'
