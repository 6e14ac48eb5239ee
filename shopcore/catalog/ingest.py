"""
Catalog ingestion.

Turns raw vendor product payloads into ProductRecord instances. This is the
only place that looks at raw payload shapes: stock becomes a tagged union,
tier tables and food details are parsed from JSON strings when needed, and
malformed values degrade to safe defaults with an integrity warning.
"""
from __future__ import annotations

import json
import math
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from shopcore.catalog.models import DomainFacets, IntegrityIssue, ProductRecord
from shopcore.catalog.pricing import parse_pricing_tiers
from shopcore.catalog.stock import normalize_stock
from shopcore.core.config import ShopcoreConfig, get_config
from shopcore.utils.logger import get_logger

logger = get_logger("catalog.ingest")


def _report(issues: Optional[List[IntegrityIssue]], product_id: Optional[str], field: str, message: str) -> None:
    logger.warning(f"Integrity warning for product {product_id}: {field}: {message}")
    if issues is not None:
        issues.append(IntegrityIssue(product_id=product_id, field=field, message=message))


def _price(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def _string_list(value: Any) -> Tuple[str, ...]:
    """Accept a list, a comma-separated string, or a single value."""
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, (list, tuple)):
        return tuple(str(v).strip() for v in value if v is not None and str(v).strip())
    return (str(value),)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_json_object(
    value: Any,
    product_id: Optional[str],
    field: str,
    issues: Optional[List[IntegrityIssue]],
) -> Dict[str, Any]:
    if value is None or value == "":
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            _report(issues, product_id, field, "could not parse JSON, ignoring")
            return {}
        if isinstance(parsed, dict):
            return parsed
    _report(issues, product_id, field, f"expected an object, got {type(value).__name__}")
    return {}


def _parse_facets(
    raw: Dict[str, Any],
    product_id: Optional[str],
    issues: Optional[List[IntegrityIssue]],
) -> DomainFacets:
    food = _parse_json_object(raw.get("food_details"), product_id, "food_details", issues)
    sizes = raw.get("sizes")
    if sizes is None and isinstance(raw.get("stock"), dict):
        sizes = list(raw["stock"].keys())

    return DomainFacets(
        dietary_types=_string_list(food.get("dietary_type", raw.get("dietary_type"))),
        cuisine=_optional_str(food.get("cuisine_type", raw.get("cuisine_type"))),
        spice_level=_optional_str(food.get("spice_level", raw.get("spice_level"))),
        sizes=_string_list(sizes),
        material=_optional_str(raw.get("material")),
        colors=_string_list(raw.get("colors")),
    )


def normalize_record(
    raw: Dict[str, Any],
    config: Optional[ShopcoreConfig] = None,
    issues: Optional[List[IntegrityIssue]] = None,
) -> Optional[ProductRecord]:
    """
    Convert one raw product payload into a ProductRecord.

    Returns None (with a warning) only when the payload has no id, since a
    product without an id cannot be keyed in the cart.
    """
    config = config or get_config()

    raw_id = raw.get("id", raw.get("product_id"))
    if raw_id is None or str(raw_id).strip() == "":
        _report(issues, None, "id", f"product without id skipped (name={raw.get('name')!r})")
        return None
    product_id = str(raw_id)

    name = _optional_str(raw.get("name"))
    if name is None:
        _report(issues, product_id, "name", "missing name")
        name = ""

    base_price = _price(raw.get("price", raw.get("base_price")))
    if base_price is None:
        _report(issues, product_id, "price", f"invalid price {raw.get('price')!r}, using 0")
        base_price = 0.0

    sale_raw = raw.get("sale_price")
    sale_price = _price(sale_raw)
    if sale_raw not in (None, "") and sale_price is None:
        _report(issues, product_id, "sale_price", f"invalid sale price {sale_raw!r}, ignoring")

    category = _optional_str(raw.get("category")) or ""
    facets = _parse_facets(raw, product_id, issues)

    stock = normalize_stock(
        raw.get("stock"),
        category=category,
        variant_keys=facets.sizes or None,
        product_id=product_id,
        config=config,
        issues=issues,
    )
    if stock.is_variant and not facets.sizes:
        facets = replace(facets, sizes=tuple(stock.keys))

    rating = _price(raw.get("rating"))
    vendor_id = raw.get("vendor_id")

    return ProductRecord(
        id=product_id,
        name=name,
        description=_optional_str(raw.get("description")) or "",
        category=category,
        base_price=base_price,
        sale_price=sale_price,
        stock=stock,
        pricing_tiers=parse_pricing_tiers(raw.get("pricing_tiers"), product_id, issues),
        facets=facets,
        image_urls=_string_list(raw.get("image_urls")),
        created_at=_optional_str(raw.get("created_at")),
        rating=rating,
        vendor_id=str(vendor_id) if vendor_id is not None else None,
    )


def normalize_catalog(
    raw_records: Iterable[Dict[str, Any]],
    config: Optional[ShopcoreConfig] = None,
    issues: Optional[List[IntegrityIssue]] = None,
) -> List[ProductRecord]:
    """Normalize a batch of raw payloads, skipping only records without an id."""
    records: List[ProductRecord] = []
    for raw in raw_records:
        if not isinstance(raw, dict):
            _report(issues, None, "record", f"expected an object, got {type(raw).__name__}")
            continue
        record = normalize_record(raw, config=config, issues=issues)
        if record is not None:
            records.append(record)
    logger.info(f"Normalized {len(records)} catalog records")
    return records
