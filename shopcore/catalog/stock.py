"""
Stock normalization.

Reconciles raw stock payloads (a plain count, a numeric string, or a per-size
object) into ScalarStock or VariantStock. Bad values clamp to 0 and are
reported as integrity issues; normalization never raises.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from shopcore.catalog.models import IntegrityIssue, ScalarStock, Stock, VariantStock
from shopcore.core.config import ShopcoreConfig, get_config
from shopcore.utils.logger import get_logger

logger = get_logger("catalog.stock")

# Inclusive upper bound of the low-stock band. Shared by every surface.
LOW_STOCK_THRESHOLD = 20


class StockStatus(str, Enum):
    ANY = "any"
    IN_STOCK = "inStock"
    LOW_STOCK = "lowStock"
    OUT_OF_STOCK = "outOfStock"


def stock_status(total: int) -> StockStatus:
    """
    Classify a total stock count.

    0 is out of stock, 1..20 is low stock, anything above 20 is in stock.
    """
    if total <= 0:
        return StockStatus.OUT_OF_STOCK
    if total <= LOW_STOCK_THRESHOLD:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def available_quantity(stock: Stock, variant_key: Optional[str] = None) -> int:
    """
    Units available for a variant selection.

    Scalar stock ignores the variant key. For variant stock an unknown or
    missing key has nothing available.
    """
    if isinstance(stock, VariantStock):
        if variant_key is None:
            return 0
        return stock.counts.get(variant_key, 0)
    return stock.count


def _report(
    issues: Optional[List[IntegrityIssue]],
    product_id: Optional[str],
    field: str,
    message: str,
) -> None:
    logger.warning(f"Integrity warning for product {product_id}: {field}: {message}")
    if issues is not None:
        issues.append(IntegrityIssue(product_id=product_id, field=field, message=message))


def coerce_count(
    value: Any,
    product_id: Optional[str] = None,
    field: str = "stock",
    issues: Optional[List[IntegrityIssue]] = None,
) -> int:
    """Convert a raw stock value to a non-negative int, clamping bad input to 0."""
    if isinstance(value, bool) or value is None:
        _report(issues, product_id, field, f"non-numeric stock {value!r}, using 0")
        return 0

    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            _report(issues, product_id, field, f"non-numeric stock {value!r}, using 0")
            return 0

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            _report(issues, product_id, field, f"non-finite stock {value!r}, using 0")
            return 0
        count = int(value)
        if count < 0:
            _report(issues, product_id, field, f"negative stock {value!r}, clamped to 0")
            return 0
        return count

    _report(issues, product_id, field, f"non-numeric stock {value!r}, using 0")
    return 0


def split_evenly(count: int, keys: Sequence[str], floor: int) -> Dict[str, int]:
    """
    Spread a scalar count across variant keys.

    Each key gets count // len(keys). A zero count stays zero on every key;
    a positive count too small to share out gives every key `floor` units
    instead (fallback for incomplete source data).
    """
    if not keys:
        return {}
    if count <= 0:
        return {key: 0 for key in keys}
    share = count // len(keys)
    if share == 0:
        share = floor
    return {key: share for key in keys}


def normalize_stock(
    raw: Any,
    category: Optional[str] = None,
    variant_keys: Optional[Sequence[str]] = None,
    product_id: Optional[str] = None,
    config: Optional[ShopcoreConfig] = None,
    issues: Optional[List[IntegrityIssue]] = None,
) -> Stock:
    """
    Resolve a raw stock payload into the Scalar/Variant tagged union.

    Args:
        raw: Stock as received from the catalog source
        category: Product category, decides whether stock is per variant
        variant_keys: Declared variant keys (e.g. the product's sizes)
        product_id: Used only for integrity reporting
        config: Configuration (defaults to the global config)
        issues: Optional sink for integrity issues

    Returns:
        ScalarStock or VariantStock
    """
    config = config or get_config()

    if isinstance(raw, Mapping):
        counts = {
            str(key): coerce_count(value, product_id, f"stock.{key}", issues)
            for key, value in raw.items()
        }
        return VariantStock(counts=counts)

    count = coerce_count(raw, product_id, "stock", issues)

    if not config.is_variant_category(category):
        return ScalarStock(count=count)

    keys = [str(k) for k in variant_keys] if variant_keys else list(config.default_variant_keys)
    counts = split_evenly(count, keys, config.variant_stock_floor)
    if 0 < count < len(keys):
        _report(
            issues,
            product_id,
            "stock",
            f"scalar stock {count} too small to split across {len(keys)} variants, "
            f"using {config.variant_stock_floor} per variant",
        )
    else:
        logger.debug(f"Split scalar stock {count} for product {product_id} across {keys}")
    return VariantStock(counts=counts)
