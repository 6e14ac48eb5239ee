"""
Stable catalog sorting.

Sorting is key-based and relies on Python's stable sort; descending order uses
`reverse=True`, which flips the comparison without reordering equal keys.
An unknown sort field leaves the input order untouched.
"""
from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from shopcore.catalog.models import ProductRecord
from shopcore.utils.logger import get_logger

logger = get_logger("catalog.sorting")

SortKey = Callable[[ProductRecord], Any]

ASC = "asc"
DESC = "desc"


def text_key(value: Optional[str]) -> tuple:
    """
    Locale-style collation key: accents and case are ignored first, then
    accents are considered. Strings differing only in case compare equal.
    """
    folded = (value or "").casefold()
    decomposed = unicodedata.normalize("NFKD", folded)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base, folded)


@dataclass(frozen=True)
class SortSpec:
    field: str = "name"
    direction: str = ASC

    def __post_init__(self) -> None:
        direction = (self.direction or ASC).lower()
        if direction not in (ASC, DESC):
            logger.warning(f"Unknown sort direction '{self.direction}', using '{ASC}'")
            direction = ASC
        object.__setattr__(self, "direction", direction)

    @property
    def descending(self) -> bool:
        return self.direction == DESC

    def toggled(self) -> "SortSpec":
        """Same field, opposite direction."""
        return SortSpec(field=self.field, direction=ASC if self.descending else DESC)


class SortRegistry:
    """Sortable fields and their key functions."""

    def __init__(self, keys: Optional[Dict[str, SortKey]] = None) -> None:
        self._keys: Dict[str, SortKey] = dict(keys or {})
        self._frozen = False

    def freeze(self) -> "SortRegistry":
        self._frozen = True
        return self

    def register(self, name: str, key: SortKey) -> None:
        if self._frozen:
            raise TypeError("Registry is frozen; register on a copy() instead")
        self._keys[name] = key

    def get(self, name: str) -> Optional[SortKey]:
        return self._keys.get(name)

    def names(self) -> List[str]:
        return list(self._keys.keys())

    def copy(self) -> "SortRegistry":
        return SortRegistry(self._keys)


def default_sort_registry() -> SortRegistry:
    return SortRegistry({
        "name": lambda p: text_key(p.name),
        "category": lambda p: text_key(p.category),
        "stock": lambda p: p.total_stock,
        "price": lambda p: p.list_price,
        # Missing dates/ratings sort as the smallest value
        "created_at": lambda p: p.created_at or "",
        "rating": lambda p: p.rating if p.rating is not None else 0.0,
    })


DEFAULT_SORTS = default_sort_registry().freeze()


def sort_products(
    records: Iterable[ProductRecord],
    spec: SortSpec,
    registry: SortRegistry = DEFAULT_SORTS,
) -> List[ProductRecord]:
    """
    Sort records by `spec`, keeping equal keys in input order.

    Args:
        records: Filtered records
        spec: Field and direction
        registry: Available sort fields

    Returns:
        New sorted list (input order if the field is unknown)
    """
    items = list(records)
    key = registry.get(spec.field)
    if key is None:
        logger.warning(f"Unknown sort field '{spec.field}', keeping input order")
        return items
    return sorted(items, key=key, reverse=spec.descending)
