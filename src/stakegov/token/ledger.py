"""
Governance token ledger.

This module defines the balance/allowance interface the governance engine
consumes, together with an in-memory ERC-20-like implementation and the
governance token built on top of it.
"""

import logging

logger = logging.getLogger(__name__)
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from ..errors.exceptions import (
    InsufficientAllowance,
    InsufficientBalance,
    NotEnoughTokens,
    NotOwner,
    ValidationError,
)


class TokenLedger(ABC):
    """Balance and allowance ledger consumed by the governance engine.

    The acting account is always passed explicitly; implementations must either
    apply a transfer completely or raise without changing any balance.
    """

    @abstractmethod
    def balance_of(self, account: str) -> int:
        """Get the balance held by an account."""
        pass

    @abstractmethod
    def allowance(self, owner: str, spender: str) -> int:
        """Get the amount a spender may still move on behalf of owner."""
        pass

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move tokens from sender to recipient."""
        pass

    @abstractmethod
    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> bool:
        """Move tokens from owner to recipient using spender's allowance."""
        pass

    @abstractmethod
    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set the allowance of spender over owner's tokens."""
        pass


class InMemoryTokenLedger(TokenLedger):
    """Dictionary backed fungible token ledger."""

    def __init__(self, name: str, symbol: str, decimals: int = 18):
        """Initialize an empty ledger."""
        if decimals < 0:
            raise ValidationError("Decimals cannot be negative", field="decimals", value=decimals)

        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[Tuple[str, str], int] = {}

    def balance_of(self, account: str) -> int:
        """Get the balance held by an account."""
        return self.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        """Get the remaining allowance of spender over owner's tokens."""
        return self.allowances.get((owner, spender), 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move tokens from sender to recipient."""
        self._check_amount(amount)
        self._check_balance(sender, amount)
        self._move(sender, recipient, amount)
        return True

    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> bool:
        """Move tokens from owner to recipient using spender's allowance."""
        self._check_amount(amount)

        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowance(
                f"Allowance of {spender} over {owner} is {allowed}, needs {amount}",
                account=owner,
                requested=amount,
                available=allowed,
            )
        self._check_balance(owner, amount)

        self.allowances[(owner, spender)] = allowed - amount
        self._move(owner, recipient, amount)
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set the allowance of spender over owner's tokens."""
        self._check_amount(amount)
        self.allowances[(owner, spender)] = amount
        logger.debug(f"{owner} approved {spender} for {amount} {self.symbol}")
        return True

    def _mint(self, account: str, amount: int) -> None:
        """Create new tokens. Only used while setting up the initial supply."""
        self._check_amount(amount)
        self.balances[account] = self.balance_of(account) + amount
        self.total_supply += amount

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[recipient] = self.balance_of(recipient) + amount

    def _check_balance(self, account: str, amount: int) -> None:
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalance(
                f"Balance of {account} is {balance}, needs {amount}",
                account=account,
                requested=amount,
                available=balance,
            )

    @staticmethod
    def _check_amount(amount: int) -> None:
        if amount < 0:
            raise ValidationError(
                "Token amount cannot be negative", field="amount", value=amount
            )


class GovernanceToken(InMemoryTokenLedger):
    """The governance token.

    The initial supply is scaled by ``10 ** decimals``. Half of it goes to the
    owner, the other half stays in the token's own reserve and can be handed
    out with :meth:`fund`, typically to a token sale.
    """

    NAME = "GovernanceToken"
    SYMBOL = "GTK"

    def __init__(
        self,
        initial_supply: int,
        owner: str,
        decimals: int = 18,
        reserve_address: Optional[str] = None,
    ):
        super().__init__(self.NAME, self.SYMBOL, decimals)
        if initial_supply < 0:
            raise ValidationError(
                "Initial supply cannot be negative",
                field="initial_supply",
                value=initial_supply,
            )

        self.owner = owner
        self.reserve_address = reserve_address or f"token:{self.SYMBOL}"

        scaled_supply = initial_supply * 10 ** decimals
        half_supply = scaled_supply // 2
        self._mint(owner, half_supply)
        self._mint(self.reserve_address, scaled_supply - half_supply)

    def fund(self, caller: str, recipient: str, amount: int) -> bool:
        """Move tokens from the reserve to a recipient. Owner only."""
        if caller != self.owner:
            raise NotOwner(f"{caller} is not the token owner", caller=caller)

        reserve = self.balance_of(self.reserve_address)
        if reserve < amount:
            raise NotEnoughTokens(
                f"Reserve holds {reserve}, cannot fund {amount}",
                account=self.reserve_address,
                requested=amount,
                available=reserve,
            )

        self.transfer(self.reserve_address, recipient, amount)
        logger.info(f"Funded {recipient} with {amount} {self.symbol} from reserve")
        return True
