"""
Catalog repository.

An explicitly passed context object holding each vendor's normalized
records. Every replacement or stock refresh bumps the vendor's version,
which keys memoized query results.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from shopcore.catalog.models import IntegrityIssue, ProductRecord
from shopcore.catalog.stock import normalize_stock
from shopcore.core.config import ShopcoreConfig, get_config
from shopcore.data.catalog_source import CatalogSource
from shopcore.utils.logger import get_logger

logger = get_logger("data.catalog_repository")


class CatalogRepository:
    """Normalized catalog records per vendor."""

    def __init__(self, config: Optional[ShopcoreConfig] = None) -> None:
        self.config = config or get_config()
        self._records: Dict[str, Tuple[ProductRecord, ...]] = {}
        self._versions: Dict[str, int] = {}
        self._issues: Dict[str, List[IntegrityIssue]] = {}

    def vendors(self) -> List[str]:
        return list(self._records.keys())

    def has_vendor(self, vendor_id: str) -> bool:
        return vendor_id in self._records

    def records(self, vendor_id: str) -> Tuple[ProductRecord, ...]:
        return self._records.get(vendor_id, ())

    def version(self, vendor_id: str) -> int:
        return self._versions.get(vendor_id, 0)

    def issues(self, vendor_id: str) -> List[IntegrityIssue]:
        """Integrity issues recorded during the vendor's last load."""
        return list(self._issues.get(vendor_id, []))

    def get(self, vendor_id: str, product_id: str) -> Optional[ProductRecord]:
        for record in self._records.get(vendor_id, ()):
            if record.id == product_id:
                return record
        return None

    def replace(
        self,
        vendor_id: str,
        records: List[ProductRecord],
        issues: Optional[List[IntegrityIssue]] = None,
    ) -> int:
        """Install a full catalog for a vendor. Returns the new version."""
        self._records[vendor_id] = tuple(records)
        self._issues[vendor_id] = list(issues or [])
        self._versions[vendor_id] = self.version(vendor_id) + 1
        logger.info(
            f"Catalog for vendor {vendor_id} replaced: {len(records)} records, "
            f"version {self._versions[vendor_id]}"
        )
        return self._versions[vendor_id]

    async def load(self, vendor_id: str, source: CatalogSource) -> Tuple[ProductRecord, ...]:
        """
        Fetch and install a vendor catalog.

        CatalogSourceError propagates to the caller; the previously loaded
        catalog stays in place when the fetch fails.
        """
        issues: List[IntegrityIssue] = []
        records = await source.fetch_catalog(vendor_id, issues=issues)
        if issues:
            logger.warning(f"Catalog for vendor {vendor_id} loaded with {len(issues)} integrity issues")
        self.replace(vendor_id, records, issues)
        return self.records(vendor_id)

    def refresh_stock(
        self,
        vendor_id: str,
        product_id: str,
        raw_stock: Any,
        issues: Optional[List[IntegrityIssue]] = None,
    ) -> Optional[ProductRecord]:
        """
        Replace one product's stock (the only mutation allowed within a
        session). Returns the refreshed record, or None if it is unknown.
        """
        current = self.get(vendor_id, product_id)
        if current is None:
            logger.warning(f"Stock refresh for unknown product {product_id} (vendor {vendor_id})")
            return None

        stock = normalize_stock(
            raw_stock,
            category=current.category,
            variant_keys=current.facets.sizes or None,
            product_id=product_id,
            config=self.config,
            issues=issues,
        )
        refreshed = replace(current, stock=stock)
        self._records[vendor_id] = tuple(
            refreshed if r.id == product_id else r for r in self._records[vendor_id]
        )
        self._versions[vendor_id] = self.version(vendor_id) + 1
        return refreshed

    def clear(self, vendor_id: Optional[str] = None) -> None:
        if vendor_id is None:
            self._records.clear()
            self._issues.clear()
            self._versions.clear()
            return
        self._records.pop(vendor_id, None)
        self._issues.pop(vendor_id, None)
        self._versions[vendor_id] = self.version(vendor_id) + 1
