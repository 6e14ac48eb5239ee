"""
Catalog source: the external, fallible collaborator that supplies raw product
payloads for a vendor.

Failures are raised as CatalogSourceError and never retried here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import httpx

from shopcore.catalog.ingest import normalize_catalog
from shopcore.catalog.models import IntegrityIssue, ProductRecord
from shopcore.core.config import ShopcoreConfig, get_config
from shopcore.errors import CatalogSourceError
from shopcore.utils.logger import get_logger

logger = get_logger("data.catalog_source")


class CatalogSource(Protocol):
    async def fetch_catalog(
        self,
        vendor_id: str,
        issues: Optional[List[IntegrityIssue]] = None,
    ) -> List[ProductRecord]:
        ...


def _extract_products(payload: Any) -> List[Dict[str, Any]]:
    """Accept a bare list or a vendor dashboard envelope with a `products` key."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        products = payload.get("products")
        if isinstance(products, list):
            return products
    raise CatalogSourceError(
        f"Unexpected catalog payload of type {type(payload).__name__}"
    )


class HttpCatalogSource:
    """
    Fetches `{base_url}/vendors/{vendor_id}/products` over HTTP.

    Args:
        base_url: API root (defaults to config.catalog_base_url)
        timeout: Request timeout in seconds
        headers: Extra request headers (e.g. Authorization)
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Optional[ShopcoreConfig] = None,
    ) -> None:
        self.config = config or get_config()
        self.base_url = (base_url or self.config.catalog_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else self.config.request_timeout
        self.headers = headers or {}
        self._transport = transport

    async def fetch_raw(self, vendor_id: str) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/vendors/{vendor_id}/products"
        logger.info(f"catalog_source: method=fetch vendor_id={vendor_id}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"catalog_source: vendor_id={vendor_id} result=error status={e.response.status_code}")
            raise CatalogSourceError(
                f"Catalog request for vendor {vendor_id} returned HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"catalog_source: vendor_id={vendor_id} result=error error={e}")
            raise CatalogSourceError(f"Catalog request for vendor {vendor_id} failed: {e}") from e

        return _extract_products(payload)

    async def fetch_catalog(
        self,
        vendor_id: str,
        issues: Optional[List[IntegrityIssue]] = None,
    ) -> List[ProductRecord]:
        raw = await self.fetch_raw(vendor_id)
        records = normalize_catalog(raw, config=self.config, issues=issues)
        logger.info(f"catalog_source: vendor_id={vendor_id} result=success count={len(records)}")
        return records


@dataclass
class StaticCatalogSource:
    """In-memory catalog source keyed by vendor id (fixtures, demos)."""
    payloads: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    config: Optional[ShopcoreConfig] = None

    async def fetch_catalog(
        self,
        vendor_id: str,
        issues: Optional[List[IntegrityIssue]] = None,
    ) -> List[ProductRecord]:
        if vendor_id not in self.payloads:
            raise CatalogSourceError(f"No catalog for vendor {vendor_id}")
        return normalize_catalog(self.payloads[vendor_id], config=self.config, issues=issues)
