"""
Typed catalog records.

Stock is resolved once at ingestion into a tagged union (ScalarStock or
VariantStock); nothing downstream inspects the raw payload shape.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class ScalarStock:
    """A single stock count for the whole product."""
    count: int

    @property
    def total(self) -> int:
        return self.count

    @property
    def is_variant(self) -> bool:
        return False


@dataclass(frozen=True)
class VariantStock:
    """Stock tracked per variant key (e.g. clothing size)."""
    counts: Dict[str, int]

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def keys(self) -> List[str]:
        return list(self.counts.keys())

    @property
    def is_variant(self) -> bool:
        return True


Stock = Union[ScalarStock, VariantStock]


@dataclass(frozen=True)
class PricingTier:
    """Unit price applying to order quantities in [min_quantity, max_quantity]."""
    min_quantity: int
    max_quantity: Optional[int]
    price: float

    def covers(self, quantity: int) -> bool:
        if quantity < self.min_quantity:
            return False
        return self.max_quantity is None or quantity <= self.max_quantity


@dataclass(frozen=True)
class DomainFacets:
    """Storefront-specific attributes (restaurant and apparel templates)."""
    dietary_types: Tuple[str, ...] = ()
    cuisine: Optional[str] = None
    spice_level: Optional[str] = None
    sizes: Tuple[str, ...] = ()
    material: Optional[str] = None
    colors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProductRecord:
    """One catalog product after ingestion."""
    id: str
    name: str
    base_price: float
    stock: Stock
    description: str = ""
    category: str = ""
    sale_price: Optional[float] = None
    pricing_tiers: Tuple[PricingTier, ...] = ()
    facets: DomainFacets = field(default_factory=DomainFacets)
    image_urls: Tuple[str, ...] = ()
    created_at: Optional[str] = None
    rating: Optional[float] = None
    vendor_id: Optional[str] = None

    @property
    def list_price(self) -> float:
        """Sale price when present, otherwise the base price."""
        return self.sale_price if self.sale_price is not None else self.base_price

    @property
    def total_stock(self) -> int:
        return self.stock.total


@dataclass(frozen=True)
class IntegrityIssue:
    """A non-fatal data problem found while ingesting catalog data."""
    product_id: Optional[str]
    field: str
    message: str
