"""
Catalog pipeline: ingestion, facet filtering, sorting and pagination.
"""
from shopcore.catalog.facets import FilterCriteria, PriceRange, filter_products
from shopcore.catalog.ingest import normalize_catalog, normalize_record
from shopcore.catalog.models import PricingTier, ProductRecord, ScalarStock, VariantStock
from shopcore.catalog.pagination import Page, paginate
from shopcore.catalog.pricing import resolve_price
from shopcore.catalog.sorting import SortSpec, sort_products
from shopcore.catalog.stock import StockStatus, normalize_stock, stock_status

__all__ = [
    "FilterCriteria",
    "PriceRange",
    "filter_products",
    "normalize_catalog",
    "normalize_record",
    "PricingTier",
    "ProductRecord",
    "ScalarStock",
    "VariantStock",
    "Page",
    "paginate",
    "resolve_price",
    "SortSpec",
    "sort_products",
    "StockStatus",
    "normalize_stock",
    "stock_status",
]
