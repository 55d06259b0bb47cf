"""
Vote delegation registry and membership policy.

A delegator points at most one delegate at a time. When that delegate votes
on a proposal, every delegator who has not voted on it yet is captured: their
own balance is staked and counted, and the capture is recorded here.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from ..errors.exceptions import GovernanceError, NotAMember, SelfDelegation
from ..token.ledger import TokenLedger


@dataclass
class Delegation:
    """A standing delegation from one member to another."""

    delegator_address: str
    delegatee_address: str
    created_at: Optional[int] = None

    def __post_init__(self):
        """Validate delegation after initialization."""
        if self.delegator_address == self.delegatee_address:
            raise SelfDelegation(
                "Cannot delegate to self", member=self.delegator_address
            )


class DelegationRegistry:
    """Sole owner of delegation edges and proposal-scoped captures."""

    def __init__(self):
        self._delegations: Dict[str, Delegation] = {}  # delegator -> delegation
        self._captures: Dict[int, Dict[str, str]] = {}  # proposal -> delegator -> delegate

    def delegate(self, delegator: str, delegatee: str, now: Optional[int] = None) -> Delegation:
        """Point ``delegator`` at ``delegatee``, replacing any earlier delegate."""
        delegation = Delegation(
            delegator_address=delegator,
            delegatee_address=delegatee,
            created_at=now,
        )

        previous = self._delegations.pop(delegator, None)
        self._delegations[delegator] = delegation

        if previous is not None and previous.delegatee_address != delegatee:
            logger.info(
                f"{delegator} moved delegation from {previous.delegatee_address} to {delegatee}"
            )
        else:
            logger.info(f"{delegator} delegated to {delegatee}")
        return delegation

    def revoke(self, delegator: str) -> Optional[str]:
        """Remove the delegator's delegation. Returns the former delegate."""
        delegation = self._delegations.pop(delegator, None)
        if delegation is None:
            return None

        logger.info(f"{delegator} revoked delegation to {delegation.delegatee_address}")
        return delegation.delegatee_address

    def delegate_of(self, delegator: str) -> Optional[str]:
        delegation = self._delegations.get(delegator)
        return delegation.delegatee_address if delegation else None

    def has_delegated(self, delegator: str) -> bool:
        return delegator in self._delegations

    def delegators_of(self, delegatee: str) -> List[str]:
        """Members currently delegating to ``delegatee``, oldest first."""
        return [
            delegator
            for delegator, delegation in self._delegations.items()
            if delegation.delegatee_address == delegatee
        ]

    def is_delegate(self, candidate: str) -> bool:
        """True when at least one delegator points at ``candidate``."""
        return any(
            delegation.delegatee_address == candidate
            for delegation in self._delegations.values()
        )

    def record_capture(self, proposal_id: int, delegator: str, delegatee: str) -> None:
        self._captures.setdefault(proposal_id, {})[delegator] = delegatee

    def captured_by(self, proposal_id: int, delegator: str) -> Optional[str]:
        """The delegate that voted for ``delegator`` on a proposal, if any."""
        return self._captures.get(proposal_id, {}).get(delegator)

    def captures_for(self, proposal_id: int) -> Dict[str, str]:
        return dict(self._captures.get(proposal_id, {}))

    def __len__(self) -> int:
        return len(self._delegations)


class MembershipPolicy:
    """A member is anyone whose available (unstaked) balance is above zero."""

    def __init__(self, token: TokenLedger):
        self.token = token

    def available_balance(self, candidate: str) -> int:
        # Staked tokens live in escrow, so the ledger balance is what is free.
        return self.token.balance_of(candidate)

    def is_member(self, candidate: str) -> bool:
        return self.available_balance(candidate) > 0

    def require_member(
        self,
        candidate: str,
        error_class: Type[GovernanceError] = NotAMember,
        proposal_id: Optional[int] = None,
    ) -> int:
        """Return the available balance or raise ``error_class`` when it is zero."""
        balance = self.available_balance(candidate)
        if balance <= 0:
            raise error_class(
                f"{candidate} holds no available governance tokens",
                member=candidate,
                proposal_id=proposal_id,
            )
        return balance
