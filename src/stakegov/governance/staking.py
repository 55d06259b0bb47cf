"""
Stake ledger.

Tracks governance tokens locked as voting stake. Locked tokens are moved out
of the member's balance into an escrow account on the token ledger, so a
member's available balance is always their ledger balance. Every lock is
released exactly once, either by executing or by finalizing the proposal it
is tied to.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..errors.exceptions import InsufficientAllowance, InsufficientBalance, ValidationError
from ..token.ledger import TokenLedger

StakeKey = Tuple[str, Optional[int]]


@dataclass
class StakeRecord:
    """Tokens locked by one member, optionally tied to a proposal."""

    owner: str
    amount: int
    proposal_id: Optional[int] = None
    locked_at: Optional[int] = None


class StakeLedger:
    """Sole owner of stake records."""

    def __init__(self, token: TokenLedger, escrow_address: str):
        self.token = token
        self.escrow_address = escrow_address
        self._records: Dict[StakeKey, StakeRecord] = {}
        self._total_locked = 0
        self._total_released = 0

    def lock(
        self,
        member: str,
        amount: int,
        proposal_id: Optional[int] = None,
        now: Optional[int] = None,
    ) -> StakeRecord:
        """Move ``amount`` of the member's balance into escrow.

        The escrow pulls the tokens with ``transfer_from``, so the member must
        have approved it. Token errors propagate unchanged.
        """
        if amount <= 0:
            raise ValidationError("Stake amount must be positive", field="amount", value=amount)

        self.token.transfer_from(self.escrow_address, member, self.escrow_address, amount)
        return self._credit(member, amount, proposal_id, now)

    def lock_many(
        self,
        amounts: Dict[str, int],
        proposal_id: Optional[int] = None,
        now: Optional[int] = None,
    ) -> List[StakeRecord]:
        """Lock several members at once; either all locks happen or none."""
        for member, amount in amounts.items():
            if amount <= 0:
                raise ValidationError("Stake amount must be positive", field="amount", value=amount)
            self._check_lockable(member, amount)

        moved: List[Tuple[str, int]] = []
        try:
            for member, amount in amounts.items():
                self.token.transfer_from(self.escrow_address, member, self.escrow_address, amount)
                moved.append((member, amount))
        except Exception:
            # Undo in reverse, restoring the allowance each transfer consumed.
            for member, amount in reversed(moved):
                self.token.transfer(self.escrow_address, member, amount)
                allowed = self.token.allowance(member, self.escrow_address)
                self.token.approve(member, self.escrow_address, allowed + amount)
            logger.warning(f"Multi-member lock failed, refunded {len(moved)} transfers")
            raise

        return [self._credit(member, amount, proposal_id, now) for member, amount in moved]

    def release(self, member: str, proposal_id: Optional[int] = None) -> int:
        """Return locked tokens to the member and zero their record.

        With ``proposal_id`` only the stake tied to that proposal is released,
        otherwise everything the member has locked. Returns the released
        amount, 0 when nothing was locked.
        """
        if proposal_id is None:
            keys = [key for key in self._records if key[0] == member]
        else:
            keys = [key for key in [(member, proposal_id)] if key in self._records]

        amount = sum(self._records[key].amount for key in keys)
        if amount == 0:
            return 0

        self.token.transfer(self.escrow_address, member, amount)
        for key in keys:
            del self._records[key]
        self._total_released += amount

        logger.info(f"Released {amount} staked tokens to {member}")
        return amount

    def amount_for(self, member: str) -> int:
        """Total amount currently locked by a member."""
        return sum(
            record.amount for (owner, _), record in self._records.items() if owner == member
        )

    def amount_for_proposal(self, member: str, proposal_id: int) -> int:
        record = self._records.get((member, proposal_id))
        return record.amount if record else 0

    def stakers_for(self, proposal_id: int) -> List[str]:
        """Members holding stake tied to a proposal, in locking order."""
        return [owner for (owner, pid) in self._records if pid == proposal_id]

    def total_locked(self) -> int:
        """Cumulative amount ever locked."""
        return self._total_locked

    def total_released(self) -> int:
        """Cumulative amount ever released."""
        return self._total_released

    def outstanding(self) -> int:
        """Amount currently held in escrow on behalf of members."""
        return self._total_locked - self._total_released

    def _credit(
        self, member: str, amount: int, proposal_id: Optional[int], now: Optional[int]
    ) -> StakeRecord:
        key = (member, proposal_id)
        record = self._records.get(key)
        if record is None:
            record = StakeRecord(owner=member, amount=0, proposal_id=proposal_id, locked_at=now)
            self._records[key] = record
        record.amount += amount
        self._total_locked += amount

        logger.info(
            f"Locked {amount} tokens of {member}"
            + (f" for proposal {proposal_id}" if proposal_id is not None else "")
        )
        return record

    def _check_lockable(self, member: str, amount: int) -> None:
        balance = self.token.balance_of(member)
        if balance < amount:
            raise InsufficientBalance(
                f"Balance of {member} is {balance}, needs {amount}",
                account=member,
                requested=amount,
                available=balance,
            )

        allowed = self.token.allowance(member, self.escrow_address)
        if allowed < amount:
            raise InsufficientAllowance(
                f"{member} approved {allowed} for staking, needs {amount}",
                account=member,
                requested=amount,
                available=allowed,
            )
