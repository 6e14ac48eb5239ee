"""
Cart ledger.

Holds exactly one line per (product_id, variant_key). A line is either absent
or active with quantity >= 1; unit prices are re-resolved from the tier table
every time a line's quantity changes.

Every mutation is computed on a copy and committed in one assignment, so a
rejected call leaves the ledger untouched and observers never see a
half-applied state. Events are published after the commit.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

from shopcore.cart.events import (
    CartEvent,
    CartListener,
    ItemAdded,
    ItemRemoved,
    TotalsChanged,
)
from shopcore.catalog.models import ProductRecord
from shopcore.catalog.pricing import resolve_price
from shopcore.catalog.stock import available_quantity
from shopcore.errors import (
    InsufficientStockError,
    InvalidQuantityError,
    LineNotFoundError,
    OutOfStockError,
)
from shopcore.utils.logger import get_logger

logger = get_logger("cart.ledger")

LineKey = Tuple[str, Optional[str]]


@dataclass(frozen=True)
class CartLine:
    product_id: str
    variant_key: Optional[str]
    quantity: int
    unit_price: float

    @property
    def key(self) -> LineKey:
        return (self.product_id, self.variant_key)

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


def _check_stock(product: ProductRecord, variant_key: Optional[str], requested: int) -> None:
    available = available_quantity(product.stock, variant_key)
    if available <= 0:
        raise OutOfStockError(product.id, variant_key)
    if requested > available:
        raise InsufficientStockError(product.id, variant_key, requested, available)


class CartLedger:
    """
    Session-scoped shopping cart.

    Lines keep insertion order. The ledger remembers the product record of
    every active line so quantity changes can re-resolve prices.
    """

    def __init__(self) -> None:
        self._lines: "OrderedDict[LineKey, CartLine]" = OrderedDict()
        self._products: Dict[str, ProductRecord] = {}
        self._listeners: List[CartListener] = []

    # ------------------------------------------------------------------ #
    # Read accessors
    # ------------------------------------------------------------------ #

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    def snapshot(self) -> Tuple[CartLine, ...]:
        """Immutable view of the current lines, for checkout."""
        return tuple(self._lines.values())

    def get_line(self, product_id: str, variant_key: Optional[str] = None) -> Optional[CartLine]:
        return self._lines.get((product_id, variant_key))

    def product_for(self, product_id: str) -> Optional[ProductRecord]:
        return self._products.get(product_id)

    def total_price(self) -> float:
        return sum(line.quantity * line.unit_price for line in self._lines.values())

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(self.snapshot())

    def available_for(self, product: ProductRecord, variant_key: Optional[str] = None) -> int:
        """Stock still addable for a selection, after what this cart already holds."""
        line = self._lines.get((product.id, variant_key))
        reserved = line.quantity if line else 0
        return max(0, available_quantity(product.stock, variant_key) - reserved)

    # ------------------------------------------------------------------ #
    # Events
    # ------------------------------------------------------------------ #

    def subscribe(self, listener: CartListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: CartListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, events: Iterable[CartEvent]) -> None:
        for event in events:
            for listener in list(self._listeners):
                try:
                    listener(event)
                except Exception as e:
                    # The mutation is already committed; a failing listener cannot undo it.
                    logger.error(f"Cart listener {listener!r} failed on {type(event).__name__}: {e}")

    def _commit(
        self,
        lines: "OrderedDict[LineKey, CartLine]",
        products: Dict[str, ProductRecord],
        events: List[CartEvent],
    ) -> None:
        before = (self.total_price(), self.item_count())
        self._lines = lines
        self._products = products
        after = (self.total_price(), self.item_count())
        if after != before:
            events.append(TotalsChanged(total_price=after[0], item_count=after[1]))
        self._publish(events)

    def _prune_products(
        self,
        lines: "OrderedDict[LineKey, CartLine]",
        products: Dict[str, ProductRecord],
    ) -> Dict[str, ProductRecord]:
        live = {line.product_id for line in lines.values()}
        return {pid: p for pid, p in products.items() if pid in live}

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def add_or_increment(
        self,
        product: ProductRecord,
        variant_key: Optional[str] = None,
        delta: int = 1,
    ) -> CartLine:
        """
        Add `delta` units of a product/variant, creating the line if needed.

        The unit price is re-resolved for the line's new total quantity.

        Raises:
            InvalidQuantityError: delta < 1
            OutOfStockError: the selection has no stock
            InsufficientStockError: the new line quantity exceeds stock
        """
        if isinstance(delta, bool) or not isinstance(delta, int) or delta < 1:
            raise InvalidQuantityError(delta, f"Increment must be at least 1, got {delta!r}")

        key = (product.id, variant_key)
        existing = self._lines.get(key)
        new_quantity = (existing.quantity if existing else 0) + delta
        _check_stock(product, variant_key, new_quantity)

        line = CartLine(
            product_id=product.id,
            variant_key=variant_key,
            quantity=new_quantity,
            unit_price=resolve_price(product, new_quantity),
        )

        lines = OrderedDict(self._lines)
        lines[key] = line
        products = dict(self._products)
        products[product.id] = product

        events: List[CartEvent] = []
        if existing is None:
            events.append(ItemAdded(product.id, variant_key, line.quantity, line.unit_price))
        logger.info(
            f"cart: add product_id={product.id} variant={variant_key} "
            f"quantity={new_quantity} unit_price={line.unit_price}"
        )
        self._commit(lines, products, events)
        return line

    def set_quantity(
        self,
        product_id: str,
        quantity: int,
        variant_key: Optional[str] = None,
    ) -> Optional[CartLine]:
        """
        Set a line's quantity. quantity <= 0 removes the line.

        Increases are checked against stock; decreases are always allowed.

        Returns:
            The updated line, or None if the line was removed or absent
        """
        key = (product_id, variant_key)
        existing = self._lines.get(key)

        if quantity <= 0:
            if existing is not None:
                self.remove(product_id, variant_key)
            return None

        if existing is None:
            raise LineNotFoundError(product_id, variant_key)

        product = self._products[product_id]
        if quantity > existing.quantity:
            _check_stock(product, variant_key, quantity)

        line = replace(existing, quantity=quantity, unit_price=resolve_price(product, quantity))
        lines = OrderedDict(self._lines)
        lines[key] = line

        logger.info(
            f"cart: set_quantity product_id={product_id} variant={variant_key} "
            f"quantity={quantity} unit_price={line.unit_price}"
        )
        self._commit(lines, dict(self._products), [])
        return line

    def remove(self, product_id: str, variant_key: Optional[str] = None) -> bool:
        """Delete a line. Returns False if there was nothing to remove."""
        key = (product_id, variant_key)
        if key not in self._lines:
            return False

        lines = OrderedDict(self._lines)
        del lines[key]
        products = self._prune_products(lines, self._products)

        logger.info(f"cart: remove product_id={product_id} variant={variant_key}")
        self._commit(lines, products, [ItemRemoved(product_id, variant_key)])
        return True

    def clear(self) -> None:
        """Remove every line (after checkout or on explicit reset)."""
        if not self._lines:
            return
        events: List[CartEvent] = [ItemRemoved(pid, vk) for pid, vk in self._lines.keys()]
        logger.info(f"cart: clear lines={len(self._lines)}")
        self._commit(OrderedDict(), {}, events)

    def refresh_products(self, records: Iterable[ProductRecord]) -> int:
        """
        Swap in refreshed product records (e.g. after a stock refresh) and
        re-resolve unit prices of affected lines. Quantities are not changed.

        Returns:
            Number of lines whose unit price changed
        """
        refreshed = {p.id: p for p in records if p.id in self._products}
        if not refreshed:
            return 0

        products = dict(self._products)
        products.update(refreshed)
        lines: "OrderedDict[LineKey, CartLine]" = OrderedDict()
        changed = 0
        for key, line in self._lines.items():
            product = refreshed.get(line.product_id)
            if product is not None:
                price = resolve_price(product, line.quantity)
                if price != line.unit_price:
                    line = replace(line, unit_price=price)
                    changed += 1
            lines[key] = line

        self._commit(lines, products, [])
        return changed
