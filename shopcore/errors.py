"""
Exception hierarchy for shopcore.

Cart constraint violations are typed and recoverable; nothing here is meant
to take down the host process.
"""
from typing import Optional


class ShopcoreError(Exception):
    """Base class for all shopcore errors."""


class InvalidQuantityError(ShopcoreError, ValueError):
    """Raised when a quantity or increment is below 1."""

    def __init__(self, quantity: int, message: Optional[str] = None) -> None:
        self.quantity = quantity
        super().__init__(message or f"Quantity must be at least 1, got {quantity!r}")


class CartError(ShopcoreError):
    """Base class for cart ledger rejections. The ledger is unchanged when raised."""


class OutOfStockError(CartError):
    """The selected product/variant has no stock available."""

    def __init__(self, product_id: str, variant_key: Optional[str] = None) -> None:
        self.product_id = product_id
        self.variant_key = variant_key
        label = f"{product_id} ({variant_key})" if variant_key else product_id
        super().__init__(f"Product {label} is out of stock")


class InsufficientStockError(CartError):
    """The requested line quantity exceeds the available stock."""

    def __init__(
        self,
        product_id: str,
        variant_key: Optional[str],
        requested: int,
        available: int,
    ) -> None:
        self.product_id = product_id
        self.variant_key = variant_key
        self.requested = requested
        self.available = available
        label = f"{product_id} ({variant_key})" if variant_key else product_id
        super().__init__(
            f"Requested {requested} of {label} but only {available} available"
        )


class LineNotFoundError(CartError, KeyError):
    """No cart line exists for the given (product, variant) key."""

    def __init__(self, product_id: str, variant_key: Optional[str] = None) -> None:
        self.product_id = product_id
        self.variant_key = variant_key
        super().__init__(f"No cart line for product={product_id} variant={variant_key}")

    def __str__(self) -> str:
        return self.args[0]


class CatalogSourceError(ShopcoreError):
    """Raised when the external catalog source fails. Not retried here."""


class CheckoutError(ShopcoreError):
    """Raised when cart submission to the checkout service fails."""
