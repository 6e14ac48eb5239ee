"""
Cart ledger, events and checkout.
"""
from shopcore.cart.events import ItemAdded, ItemRemoved, TotalsChanged
from shopcore.cart.ledger import CartLedger, CartLine

__all__ = [
    "CartLedger",
    "CartLine",
    "ItemAdded",
    "ItemRemoved",
    "TotalsChanged",
]
