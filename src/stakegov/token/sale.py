"""
Fixed-price governance token sale.

The sale holds governance tokens at its own ledger address and hands them out
in exchange for native currency (wei). Purchased tokens land in the buyer's
available balance and therefore count towards their future vote weight.
"""

import logging

logger = logging.getLogger(__name__)
from typing import Optional

from ..errors.exceptions import (
    NotEnoughTokensInTheContract,
    SaleClosed,
    SendEtherToPurchaseTokens,
    create_validation_error,
)
from ..governance.access import Ownership
from ..governance.observability import EventType, GovernanceEvents
from .ledger import InMemoryTokenLedger

WEI_PER_ETHER = 10 ** 18
# 0.01 ether per whole token: 1 ether buys 100 tokens
DEFAULT_TOKEN_PRICE = WEI_PER_ETHER // 100


class TokenSale:
    """Sells governance tokens for wei at an owner-controlled price."""

    def __init__(
        self,
        token: InMemoryTokenLedger,
        ownership: Ownership,
        address: str,
        token_price: int = DEFAULT_TOKEN_PRICE,
        events: Optional[GovernanceEvents] = None,
    ):
        if token_price <= 0:
            raise create_validation_error(
                "token_price", token_price, "a positive price in wei", "Token price must be positive"
            )

        self.token = token
        self.ownership = ownership
        self.address = address
        self.events = events
        self._token_price = token_price
        self._sale_open = True
        self._wei_raised = 0

    def buy_tokens(self, buyer: str, wei_sent: int) -> int:
        """Buy as many tokens as ``wei_sent`` pays for. Returns the amount in base units."""
        if not self._sale_open:
            raise SaleClosed("The token sale is closed")

        if wei_sent <= 0:
            raise SendEtherToPurchaseTokens("Send ether to purchase tokens")

        tokens = wei_sent * 10 ** self.token.decimals // self._token_price
        available = self.token.balance_of(self.address)
        if tokens > available:
            raise NotEnoughTokensInTheContract(
                f"Sale holds {available} tokens, {tokens} requested"
            )

        self.token.transfer(self.address, buyer, tokens)
        self._wei_raised += wei_sent

        logger.info(f"{buyer} bought {tokens} tokens for {wei_sent} wei")
        if self.events is not None:
            self.events.emit_event(
                EventType.TOKENS_PURCHASED,
                member_address=buyer,
                amount=tokens,
                metadata={"wei_sent": wei_sent, "token_price": self._token_price},
            )
        return tokens

    def set_token_price(self, caller: str, token_price: int) -> None:
        """Set the price in wei per whole token. Owner only."""
        self.ownership.require_owner(caller, "set the token price")
        if token_price <= 0:
            raise create_validation_error(
                "token_price", token_price, "a positive price in wei", "Token price must be positive"
            )

        previous = self._token_price
        self._token_price = token_price
        logger.info(f"Token price changed from {previous} to {token_price} wei")
        if self.events is not None:
            self.events.emit_event(
                EventType.TOKEN_PRICE_UPDATED,
                member_address=caller,
                amount=token_price,
                metadata={"previous": previous},
            )

    def close_sale(self, caller: str) -> None:
        """Stop all further purchases. Owner only."""
        self.ownership.require_owner(caller, "close the sale")
        self._sale_open = False
        logger.info("Token sale closed")
        if self.events is not None:
            self.events.emit_event(EventType.SALE_CLOSED, member_address=caller)

    def get_token_price(self) -> int:
        return self._token_price

    def get_sale_open(self) -> bool:
        return self._sale_open

    def get_wei_raised(self) -> int:
        return self._wei_raised
