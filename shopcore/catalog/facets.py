"""
Facet filtering.

Each facet is an independent predicate ProductRecord -> bool. Active
predicates are AND-ed and applied in one stable pass, so filtering by two
criteria in sequence gives the same result as filtering by both at once.

Storefronts plug in their domain facets through a FacetRegistry instead of
re-implementing the pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Union,
)

from shopcore.catalog.models import ProductRecord
from shopcore.catalog.stock import StockStatus, stock_status
from shopcore.utils.logger import get_logger

logger = get_logger("catalog.facets")

FacetPredicate = Callable[[ProductRecord], bool]
FacetValue = Union[None, str, Sequence[str]]

ALL = "All"


def is_pass_through(value: Optional[str]) -> bool:
    """None, empty and 'all' (any case) switch a selection off."""
    return value is None or str(value).strip() == "" or str(value).strip().lower() == "all"


@dataclass(frozen=True)
class PriceRange:
    """Inclusive price bounds; None means unbounded."""
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self.min is not None or self.max is not None

    def contains(self, price: float) -> bool:
        if self.min is not None and price < self.min:
            return False
        if self.max is not None and price > self.max:
            return False
        return True


@dataclass(frozen=True)
class FilterCriteria:
    """
    User-selected catalog filters.

    `facets` may be given as a dict; it is stored as a sorted tuple of
    (name, value) pairs so criteria stay hashable for memoization.
    """
    search_term: str = ""
    category: str = ALL
    stock_status: StockStatus = StockStatus.ANY
    price_range: PriceRange = field(default_factory=PriceRange)
    facets: Any = ()

    def __post_init__(self) -> None:
        if self.search_term is None:
            object.__setattr__(self, "search_term", "")
        raw = self.facets
        if isinstance(raw, Mapping):
            pairs = raw.items()
        else:
            pairs = raw or ()
        normalized = tuple(sorted(
            (str(name), str(value))
            for name, value in pairs
            if not is_pass_through(value)
        ))
        object.__setattr__(self, "facets", normalized)
        if not isinstance(self.stock_status, StockStatus):
            object.__setattr__(self, "stock_status", StockStatus(self.stock_status))

    @property
    def facet_map(self) -> Dict[str, str]:
        return dict(self.facets)

    def active_filter_count(self) -> int:
        """Number of filters currently narrowing the catalog."""
        count = 0
        if self.search_term.strip():
            count += 1
        if not is_pass_through(self.category):
            count += 1
        if self.stock_status != StockStatus.ANY:
            count += 1
        if self.price_range.is_active:
            count += 1
        return count + len(self.facets)


# ---------------------------------------------------------------------------
# Domain facet registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FacetDefinition:
    """A pluggable domain facet: how to read its value(s) from a product."""
    name: str
    extractor: Callable[[ProductRecord], FacetValue]
    searchable: bool = False    # Include the value in free-text search


class FacetRegistry:
    """Domain facets available to the filter, keyed by name."""

    def __init__(self, definitions: Iterable[FacetDefinition] = ()) -> None:
        self._definitions: Dict[str, FacetDefinition] = {}
        self._frozen = False
        for definition in definitions:
            self.register(definition)

    def freeze(self) -> "FacetRegistry":
        """Reject further registrations. Returns self."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, definition: FacetDefinition) -> None:
        if self._frozen:
            raise TypeError("Registry is frozen; register on a copy() instead")
        self._definitions[definition.name] = definition

    def get(self, name: str) -> Optional[FacetDefinition]:
        return self._definitions.get(name)

    def names(self) -> List[str]:
        return list(self._definitions.keys())

    def searchable(self) -> List[FacetDefinition]:
        return [d for d in self._definitions.values() if d.searchable]

    def copy(self) -> "FacetRegistry":
        """Unfrozen copy with the same definitions."""
        return FacetRegistry(self._definitions.values())


def default_registry() -> FacetRegistry:
    """Restaurant and apparel facets shared by the storefront templates."""
    return FacetRegistry([
        FacetDefinition("dietary_type", lambda p: p.facets.dietary_types),
        FacetDefinition("spice_level", lambda p: p.facets.spice_level),
        FacetDefinition("cuisine", lambda p: p.facets.cuisine, searchable=True),
        FacetDefinition("size", lambda p: p.facets.sizes),
        FacetDefinition("material", lambda p: p.facets.material, searchable=True),
        FacetDefinition("color", lambda p: p.facets.colors),
    ])


# Shared read-only defaults; engines build their own registry
DEFAULT_FACETS = default_registry().freeze()


def _values(raw: FacetValue) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    return [str(v) for v in raw if v is not None]


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def search_predicate(term: str, registry: FacetRegistry = DEFAULT_FACETS) -> FacetPredicate:
    """Case-insensitive substring match on name, description, category and text facets."""
    needle = term.strip().lower()
    text_facets = registry.searchable()

    def predicate(product: ProductRecord) -> bool:
        haystacks = [product.name, product.description, product.category]
        for definition in text_facets:
            haystacks.extend(_values(definition.extractor(product)))
        return any(needle in (h or "").lower() for h in haystacks)

    return predicate


def category_predicate(category: str) -> FacetPredicate:
    return lambda product: product.category == category


def stock_status_predicate(status: StockStatus) -> FacetPredicate:
    return lambda product: stock_status(product.total_stock) == status


def price_range_predicate(price_range: PriceRange) -> FacetPredicate:
    """Inclusive range check against the listed (sale-or-base) price."""
    return lambda product: price_range.contains(product.list_price)


def domain_facet_predicate(definition: FacetDefinition, wanted: str) -> FacetPredicate:
    """Exact match; multi-valued facets match when any value equals `wanted`."""
    def predicate(product: ProductRecord) -> bool:
        return wanted in _values(definition.extractor(product))

    return predicate


def build_predicates(
    criteria: FilterCriteria,
    registry: FacetRegistry = DEFAULT_FACETS,
) -> List[FacetPredicate]:
    """Translate criteria into the list of active predicates."""
    predicates: List[FacetPredicate] = []

    if criteria.search_term.strip():
        predicates.append(search_predicate(criteria.search_term, registry))
    if not is_pass_through(criteria.category):
        predicates.append(category_predicate(criteria.category))
    if criteria.stock_status != StockStatus.ANY:
        predicates.append(stock_status_predicate(criteria.stock_status))
    if criteria.price_range.is_active:
        predicates.append(price_range_predicate(criteria.price_range))

    for name, wanted in criteria.facets:
        definition = registry.get(name)
        if definition is None:
            logger.warning(f"Ignoring unknown facet '{name}'")
            continue
        predicates.append(domain_facet_predicate(definition, wanted))

    return predicates


def matches(
    product: ProductRecord,
    criteria: FilterCriteria,
    registry: FacetRegistry = DEFAULT_FACETS,
) -> bool:
    return all(predicate(product) for predicate in build_predicates(criteria, registry))


def filter_products(
    records: Iterable[ProductRecord],
    criteria: FilterCriteria,
    registry: FacetRegistry = DEFAULT_FACETS,
) -> List[ProductRecord]:
    """
    Apply all active predicates, preserving input order.

    Args:
        records: Catalog records in source order
        criteria: Filter selections
        registry: Domain facets available to this storefront

    Returns:
        Matching records, in the same relative order as the input
    """
    predicates = build_predicates(criteria, registry)
    if not predicates:
        return list(records)
    return [p for p in records if all(predicate(p) for predicate in predicates)]


# ---------------------------------------------------------------------------
# Facet discovery
# ---------------------------------------------------------------------------

def _unique(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return list(seen.keys())


def facet_options(
    records: Sequence[ProductRecord],
    registry: FacetRegistry = DEFAULT_FACETS,
) -> Dict[str, List[str]]:
    """
    Distinct selectable values per facet, in first-seen order.

    Categories are prefixed with "All".
    """
    options: Dict[str, List[str]] = {
        "category": [ALL] + _unique(p.category for p in records),
    }
    for name in registry.names():
        definition = registry.get(name)
        options[name] = _unique(
            value for p in records for value in _values(definition.extractor(p))
        )
    return options


def stock_status_counts(records: Iterable[ProductRecord]) -> Dict[StockStatus, int]:
    """Number of products per stock status (excluding ANY)."""
    counts = {
        StockStatus.IN_STOCK: 0,
        StockStatus.LOW_STOCK: 0,
        StockStatus.OUT_OF_STOCK: 0,
    }
    for product in records:
        counts[stock_status(product.total_stock)] += 1
    return counts
