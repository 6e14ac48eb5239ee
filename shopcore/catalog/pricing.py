"""
Quantity-tiered price resolution.

A product's tier table maps order-quantity ranges to unit prices. When more
than one tier covers a quantity the cheapest wins (ties go to the lowest
min_quantity). Products with no usable tiers are priced from an implicit
single tier at sale-or-base price.
"""
from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Optional, Tuple

from shopcore.catalog.models import IntegrityIssue, PricingTier, ProductRecord
from shopcore.errors import InvalidQuantityError
from shopcore.utils.logger import get_logger

logger = get_logger("catalog.pricing")


def list_price(product: ProductRecord) -> float:
    """Sale price when present, otherwise base price."""
    return product.list_price


def effective_tiers(product: ProductRecord) -> Tuple[PricingTier, ...]:
    """The product's tier table, or the implicit {1, None, list price} tier."""
    if product.pricing_tiers:
        return product.pricing_tiers
    return (PricingTier(min_quantity=1, max_quantity=None, price=product.list_price),)


def select_tier(product: ProductRecord, quantity: int) -> Optional[PricingTier]:
    """Return the cheapest explicit tier covering `quantity`, or None."""
    matching = [tier for tier in product.pricing_tiers if tier.covers(quantity)]
    if not matching:
        return None
    return min(matching, key=lambda tier: (tier.price, tier.min_quantity))


def resolve_price(product: ProductRecord, quantity: int) -> float:
    """
    Resolve the unit price of `product` when ordering `quantity` units.

    Args:
        product: Catalog product
        quantity: Order quantity (must be >= 1)

    Returns:
        Unit price

    Raises:
        InvalidQuantityError: If quantity < 1
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantityError(quantity)

    tier = select_tier(product, quantity)
    if tier is None:
        return product.list_price
    return tier.price


def line_total(product: ProductRecord, quantity: int) -> float:
    """Unit price at `quantity` times `quantity`."""
    return resolve_price(product, quantity) * quantity


# ---------------------------------------------------------------------------
# Tier-table parsing
# ---------------------------------------------------------------------------

def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _report(issues: Optional[List[IntegrityIssue]], product_id: Optional[str], message: str) -> None:
    logger.warning(f"Integrity warning for product {product_id}: pricing_tiers: {message}")
    if issues is not None:
        issues.append(IntegrityIssue(product_id=product_id, field="pricing_tiers", message=message))


def _moq_rows_to_ranges(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Convert dashboard {moq, price} rows into explicit quantity ranges."""
    with_moq = [r for r in rows if _to_number(r.get("moq")) is not None]
    ordered = sorted(with_moq, key=lambda r: _to_number(r.get("moq")))
    ranges = []
    for idx, row in enumerate(ordered):
        upper = None
        if idx + 1 < len(ordered):
            upper = int(_to_number(ordered[idx + 1]["moq"])) - 1
        ranges.append({
            "min_quantity": row.get("moq"),
            "max_quantity": upper,
            "price": row.get("price"),
        })
    return ranges


def _check_coverage(tiers: List[PricingTier], product_id: Optional[str], issues: Optional[List[IntegrityIssue]]) -> None:
    """Log gaps in the tier table. Best effort; gaps fall back to list price."""
    ordered = sorted(tiers, key=lambda t: t.min_quantity)
    expected = 1
    for tier in ordered:
        if tier.min_quantity > expected:
            _report(issues, product_id, f"no tier covers quantities {expected}-{tier.min_quantity - 1}")
        if tier.max_quantity is None:
            return
        expected = max(expected, tier.max_quantity + 1)
    _report(issues, product_id, f"no tier covers quantities from {expected} upward")


def parse_pricing_tiers(
    raw: Any,
    product_id: Optional[str] = None,
    issues: Optional[List[IntegrityIssue]] = None,
) -> Tuple[PricingTier, ...]:
    """
    Parse a raw tier table into PricingTier records.

    Accepts a list or a JSON-encoded list of either
    {min_quantity, max_quantity, price} or {moq, price} objects. Malformed
    entries are dropped with an integrity warning; an unparseable table
    yields no tiers.
    """
    if raw is None or raw == "":
        return ()

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            _report(issues, product_id, f"could not parse tier JSON ({e}), ignoring tiers")
            return ()

    if not isinstance(raw, list):
        _report(issues, product_id, f"expected a list of tiers, got {type(raw).__name__}")
        return ()

    rows = [r for r in raw if isinstance(r, dict)]
    if len(rows) != len(raw):
        _report(issues, product_id, "dropped non-object tier entries")

    if rows and all("min_quantity" not in r and "moq" in r for r in rows):
        rows = _moq_rows_to_ranges(rows)

    tiers: List[PricingTier] = []
    for row in rows:
        price = _to_number(row.get("price"))
        min_qty = _to_number(row.get("min_quantity"))
        max_raw = row.get("max_quantity")
        max_qty = _to_number(max_raw) if max_raw is not None else None

        if price is None or price < 0:
            _report(issues, product_id, f"dropped tier with invalid price {row.get('price')!r}")
            continue
        if min_qty is None or min_qty < 1:
            _report(issues, product_id, f"dropped tier with invalid min_quantity {row.get('min_quantity')!r}")
            continue
        if max_raw is not None and (max_qty is None or max_qty < min_qty):
            _report(issues, product_id, f"dropped tier with invalid max_quantity {max_raw!r}")
            continue

        tiers.append(PricingTier(
            min_quantity=int(min_qty),
            max_quantity=int(max_qty) if max_qty is not None else None,
            price=price,
        ))

    if tiers:
        _check_coverage(tiers, product_id, issues)
    return tuple(tiers)
