"""
Checkout summary and submission.

Totals mirror the cashier register: subtotal from the ledger, optional tax,
a flat discount, and a final total that never goes below zero. Submission is
an external call; failures surface as CheckoutError and are not retried.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shopcore.cart.ledger import CartLedger, CartLine
from shopcore.core.config import ShopcoreConfig, get_config
from shopcore.errors import CheckoutError
from shopcore.utils.logger import get_logger

logger = get_logger("cart.checkout")


@dataclass(frozen=True)
class CheckoutSummary:
    subtotal: float
    tax_amount: float
    discount_amount: float
    total: float
    item_count: int


def summarize(
    ledger: CartLedger,
    tax_enabled: Optional[bool] = None,
    tax_rate: Optional[float] = None,
    discount_amount: float = 0.0,
    config: Optional[ShopcoreConfig] = None,
) -> CheckoutSummary:
    """Compute checkout totals. Tax settings default to the configuration."""
    config = config or get_config()
    enabled = config.tax_enabled if tax_enabled is None else tax_enabled
    rate = config.tax_rate if tax_rate is None else tax_rate

    subtotal = ledger.total_price()
    tax_amount = subtotal * rate if enabled else 0.0
    discount = max(0.0, discount_amount)
    total = max(0.0, subtotal + tax_amount - discount)

    return CheckoutSummary(
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=discount,
        total=total,
        item_count=ledger.item_count(),
    )


def build_checkout_payload(
    lines: Sequence[CartLine],
    summary: CheckoutSummary,
    vendor_id: str,
    customer: Optional[Dict[str, Any]] = None,
    payment_method: Optional[str] = None,
    notes: str = "",
) -> Dict[str, Any]:
    """Shape a ledger snapshot into the order-service request body."""
    items: List[Dict[str, Any]] = [
        {
            "product_id": line.product_id,
            "variant_key": line.variant_key,
            "quantity": line.quantity,
            "unit_price": line.unit_price,
            "total_price": line.line_total,
        }
        for line in lines
    ]
    return {
        "vendor_id": vendor_id,
        "items": items,
        "customer": customer,
        "payment_method": payment_method,
        "subtotal": summary.subtotal,
        "tax_amount": summary.tax_amount,
        "discount_amount": summary.discount_amount,
        "total_amount": summary.total,
        "notes": notes,
    }


class OrderReceipt(BaseModel):
    """Order service acknowledgement."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    order_id: str = Field(description="Order identifier")
    order_number: Optional[str] = Field(default=None, description="Human-facing order number")
    total_amount: float = Field(description="Amount charged")
    items_count: int = Field(default=0, description="Units in the order")
    created_at: Optional[str] = Field(default=None, description="Creation timestamp")


class CheckoutClient:
    """
    Submits ledger snapshots to the external order service.

    Args:
        url: Order endpoint (defaults to config.checkout_url)
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        config: Optional[ShopcoreConfig] = None,
    ) -> None:
        config = config or get_config()
        self.url = url or config.checkout_url
        self.timeout = timeout if timeout is not None else config.request_timeout
        self._transport = transport

    async def submit_cart(
        self,
        ledger: CartLedger,
        vendor_id: str,
        summary: Optional[CheckoutSummary] = None,
        **payload_fields: Any,
    ) -> OrderReceipt:
        """
        Submit the current ledger snapshot.

        The ledger is not cleared here; callers clear it once the receipt
        is in hand.

        Raises:
            CheckoutError: empty cart, transport failure, non-2xx response,
                or an unparseable receipt
        """
        snapshot = ledger.snapshot()
        if not snapshot:
            raise CheckoutError("Cart is empty")

        summary = summary or summarize(ledger)
        body = build_checkout_payload(snapshot, summary, vendor_id, **payload_fields)
        logger.info(f"checkout: submit vendor_id={vendor_id} lines={len(snapshot)} total={summary.total}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"checkout: result=error status={e.response.status_code}")
            raise CheckoutError(f"Order service returned HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"checkout: result=error error={e}")
            raise CheckoutError(f"Order submission failed: {e}") from e

        try:
            receipt = OrderReceipt.model_validate(data)
        except ValidationError as e:
            raise CheckoutError(f"Malformed order receipt: {e}") from e

        logger.info(f"checkout: result=success order_id={receipt.order_id}")
        return receipt
