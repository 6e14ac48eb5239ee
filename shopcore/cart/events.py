"""
Cart events delivered to external collaborators after a mutation commits.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Union


@dataclass(frozen=True)
class ItemAdded:
    """A new line entered the cart."""
    product_id: str
    variant_key: Optional[str]
    quantity: int
    unit_price: float


@dataclass(frozen=True)
class ItemRemoved:
    """A line left the cart (removed, set to 0, or cleared)."""
    product_id: str
    variant_key: Optional[str]


@dataclass(frozen=True)
class TotalsChanged:
    total_price: float
    item_count: int


CartEvent = Union[ItemAdded, ItemRemoved, TotalsChanged]
CartListener = Callable[[CartEvent], None]
