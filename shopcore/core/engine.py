"""
Catalog query engine.

Filter -> sort -> paginate is a pure derivation over a vendor's records.
CatalogEngine memoizes it on (vendor, catalog version, criteria, sort, page,
page size); BrowseSession holds one shopper's interactive state and applies
the rule that any change to criteria, sort or page size returns to page 1.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from shopcore.catalog.facets import (
    DEFAULT_FACETS,
    FacetRegistry,
    FilterCriteria,
    default_registry,
    facet_options,
    filter_products,
    stock_status_counts,
)
from shopcore.catalog.models import ProductRecord
from shopcore.catalog.pagination import paginate
from shopcore.catalog.sorting import (
    ASC,
    DEFAULT_SORTS,
    SortRegistry,
    SortSpec,
    default_sort_registry,
    sort_products,
)
from shopcore.catalog.stock import StockStatus
from shopcore.core.config import ShopcoreConfig, get_config
from shopcore.data.catalog_repository import CatalogRepository
from shopcore.utils.logger import get_logger

logger = get_logger("core.engine")


@dataclass(frozen=True)
class QueryResult:
    items: Tuple[ProductRecord, ...]
    total_count: int
    total_pages: int
    page: int
    page_size: int
    start_index: int
    end_index: int


def run_query(
    records: Sequence[ProductRecord],
    criteria: FilterCriteria,
    sort: SortSpec,
    page: int = 1,
    page_size: int = 10,
    facets: FacetRegistry = DEFAULT_FACETS,
    sorts: SortRegistry = DEFAULT_SORTS,
) -> QueryResult:
    """Filter, sort and slice `records`. Pure; no caching."""
    filtered = filter_products(records, criteria, facets)
    ordered = sort_products(filtered, sort, sorts)
    sliced = paginate(ordered, page, page_size)
    return QueryResult(
        items=tuple(sliced.items),
        total_count=sliced.total_count,
        total_pages=sliced.total_pages,
        page=sliced.page,
        page_size=sliced.page_size,
        start_index=sliced.start_index,
        end_index=sliced.end_index,
    )


class CatalogEngine:
    """
    Query interface over a CatalogRepository.

    Args:
        repository: Source of normalized records per vendor
        facets: Domain facets this storefront supports
        sorts: Sortable fields
        config: Configuration (page size defaults)
        cache_size: Number of memoized query results kept
    """

    def __init__(
        self,
        repository: CatalogRepository,
        facets: Optional[FacetRegistry] = None,
        sorts: Optional[SortRegistry] = None,
        config: Optional[ShopcoreConfig] = None,
        cache_size: int = 64,
    ) -> None:
        self.repository = repository
        self.facets = facets or default_registry()
        self.sorts = sorts or default_sort_registry()
        self.config = config or get_config()
        self.cache_size = cache_size
        self._cache: "OrderedDict[tuple, QueryResult]" = OrderedDict()
        self.cache_hits = 0
        self.cache_misses = 0

    def resolve_page_size(self, page_size: Optional[int]) -> int:
        if page_size is None:
            return self.config.default_page_size
        return min(page_size, self.config.max_page_size)

    def query(
        self,
        vendor_id: str,
        criteria: Optional[FilterCriteria] = None,
        sort: Optional[SortSpec] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> QueryResult:
        """Return one page of the filtered, sorted catalog for a vendor."""
        criteria = criteria or FilterCriteria()
        sort = sort or SortSpec()
        size = self.resolve_page_size(page_size)

        key = (vendor_id, self.repository.version(vendor_id), criteria, sort, page, size)
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            self.cache_hits += 1
            return cached

        self.cache_misses += 1
        result = run_query(
            self.repository.records(vendor_id),
            criteria,
            sort,
            page=page,
            page_size=size,
            facets=self.facets,
            sorts=self.sorts,
        )
        self._cache[key] = result
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

        logger.debug(
            f"query vendor={vendor_id} page={result.page}/{result.total_pages} "
            f"total={result.total_count}"
        )
        return result

    def facet_options(self, vendor_id: str) -> Dict[str, List[str]]:
        return facet_options(self.repository.records(vendor_id), self.facets)

    def stock_status_counts(self, vendor_id: str) -> Dict[StockStatus, int]:
        return stock_status_counts(self.repository.records(vendor_id))

    def clear_cache(self) -> None:
        self._cache.clear()


@dataclass
class BrowseSession:
    """
    One shopper's browsing state for a vendor catalog.

    Changing criteria, sort or page size resets the page to 1; the page
    itself is clamped by the engine on every query.
    """
    engine: CatalogEngine
    vendor_id: str
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    sort: SortSpec = field(default_factory=SortSpec)
    page: int = 1
    page_size: Optional[int] = None

    def set_criteria(self, criteria: FilterCriteria) -> None:
        if criteria != self.criteria:
            self.criteria = criteria
            self.page = 1

    def set_sort(self, sort: SortSpec) -> None:
        if sort != self.sort:
            self.sort = sort
            self.page = 1

    def sort_by(self, field_name: str) -> None:
        """Column-header behaviour: same field toggles direction, new field sorts ascending."""
        if field_name == self.sort.field:
            self.set_sort(self.sort.toggled())
        else:
            self.set_sort(SortSpec(field=field_name, direction=ASC))

    def set_page_size(self, page_size: int) -> None:
        if page_size != self.page_size:
            self.page_size = page_size
            self.page = 1

    def go_to_page(self, page: int) -> None:
        self.page = page

    def next_page(self) -> None:
        result = self.results()
        self.page = min(result.page + 1, result.total_pages)

    def previous_page(self) -> None:
        self.page = max(1, self.results().page - 1)

    def clear_filters(self) -> None:
        self.set_criteria(FilterCriteria())

    def results(self) -> QueryResult:
        result = self.engine.query(
            self.vendor_id,
            self.criteria,
            self.sort,
            page=self.page,
            page_size=self.page_size,
        )
        self.page = result.page
        return result
