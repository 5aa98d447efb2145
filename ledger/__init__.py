"""Ledger module for account balances and purchases.

This module handles the purchase transaction: it debits the buyer, credits the
seller, records the sale and removes the listing, all in one store
transaction. It also exposes balance lookups and account credits.
"""
import logging
from typing import Optional

from database import Store, Session
from identity import CallContext
from listings import Listing, UINT64_MAX, get_listing
from results import ErrorKind, MarketError

logger = logging.getLogger(__name__)

class PurchaseError(MarketError):
    """Base class for purchase-related errors."""
    kind = ErrorKind.BAD_REQUEST

class ItemNotFoundError(PurchaseError):
    """Raised when the item being bought is not listed."""
    kind = ErrorKind.NOT_FOUND

class SelfPurchaseError(PurchaseError):
    """Raised when a seller tries to buy their own listing."""
    kind = ErrorKind.FORBIDDEN

class InsufficientFundsError(PurchaseError):
    """Raised when the buyer's balance is below the listing price."""
    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"insufficient funds: available {available}, price {requested}"
        )

class BalanceOverflowError(PurchaseError):
    """Raised when a credit would push a balance past the uint64 range."""
    pass

class AccountError(MarketError):
    """Raised when an account operation is invalid."""
    kind = ErrorKind.BAD_REQUEST

class SaleNotFoundError(MarketError):
    """Raised when no sale has been recorded for an item."""
    kind = ErrorKind.NOT_FOUND

async def get_balance(session: Session, identity: str) -> int:
    """Balance of identity; an absent account holds 0."""
    balance = await session.accounts.get(identity)
    return 0 if balance is None else balance

class LedgerEngine:
    """Executes purchases and keeps account balances."""

    def __init__(self, store: Store, derive_seller_from_listing: bool = False) -> None:
        """Initialize the ledger.

        Args:
            store: The marketplace store
            derive_seller_from_listing: Credit the listing owner instead of the
                seller named by the buyer.
        """
        self.store = store
        self.derive_seller_from_listing = derive_seller_from_listing

    async def buy_product(self, ctx: CallContext, item_id: str, seller: Optional[str]) -> Listing:
        """Buy a listed item for its full price.

        The listing lookup, the ownership and funds checks, both balance
        updates, the sale record and the listing removal all happen in one
        transaction.

        Args:
            ctx: Call context; the caller is the buyer
            item_id: Id of the listing to buy
            seller: Identity credited with the price

        Returns:
            The listing as it was before removal

        Raises:
            PurchaseError: If the item id or seller is missing
            ItemNotFoundError: If the listing doesn't exist
            SelfPurchaseError: If the caller owns the listing
            InsufficientFundsError: If the buyer cannot cover the price
            BalanceOverflowError: If the seller balance would overflow
        """
        if not item_id:
            raise PurchaseError("item id is missing")
        if not seller and not self.derive_seller_from_listing:
            raise PurchaseError("seller identity is missing")

        buyer = ctx.caller

        async with self.store.transaction() as session:
            try:
                listing = await get_listing(session, item_id)
            except LookupError:
                raise ItemNotFoundError(f"item with id {item_id} not found")

            if listing.owner == buyer:
                raise SelfPurchaseError("seller cannot buy own product")

            if self.derive_seller_from_listing:
                seller = listing.owner

            buyer_balance = await get_balance(session, buyer)
            if listing.price > buyer_balance:
                raise InsufficientFundsError(buyer_balance, listing.price)

            new_buyer_balance = buyer_balance - listing.price
            if seller == buyer:
                seller_balance = new_buyer_balance
            else:
                seller_balance = await get_balance(session, seller)
            if seller_balance + listing.price > UINT64_MAX:
                raise BalanceOverflowError(f"balance of {seller} would overflow")

            await session.accounts.insert(buyer, new_buyer_balance)
            await session.accounts.insert(seller, seller_balance + listing.price)
            await session.sold_items.insert(item_id, buyer)
            await session.listings.remove(item_id)

        logger.info(
            f"Item {item_id} sold to {buyer} for {listing.price}, credited to {seller}"
        )
        return listing

    async def get_balance(self, ctx: CallContext, identity: str) -> int:
        """Get the balance of an account."""
        if not identity:
            raise AccountError("identity is missing")
        async with self.store.transaction(readonly=True) as session:
            return await get_balance(session, identity)

    async def credit_account(self, ctx: CallContext, identity: str, amount: int) -> int:
        """Add tokens to an account.

        Returns:
            The new balance

        Raises:
            AccountError: If identity is missing or amount is not positive
            BalanceOverflowError: If the balance would overflow
        """
        if not identity:
            raise AccountError("identity is missing")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise AccountError("amount must be a positive integer")

        async with self.store.transaction() as session:
            balance = await get_balance(session, identity)
            if balance + amount > UINT64_MAX:
                raise BalanceOverflowError(f"balance of {identity} would overflow")
            await session.accounts.insert(identity, balance + amount)

        logger.info(f"Credited {amount} to {identity} by {ctx.caller}")
        return balance + amount

    async def get_sold_record(self, ctx: CallContext, item_id: str) -> str:
        """Get the buyer of a sold item.

        Raises:
            SaleNotFoundError: If the item has not been sold
        """
        if not item_id:
            raise PurchaseError("item id is missing")
        async with self.store.transaction(readonly=True) as session:
            buyer = await session.sold_items.get(item_id)
        if buyer is None:
            raise SaleNotFoundError(f"item {item_id} has not been sold")
        return buyer

__all__ = [
    'LedgerEngine', 'get_balance',
    'PurchaseError', 'ItemNotFoundError', 'SelfPurchaseError', 'InsufficientFundsError',
    'BalanceOverflowError', 'AccountError', 'SaleNotFoundError'
]
