"""
Voting engine.

Orchestrates direct votes, delegated votes and the receipts that keep every
member to one vote per proposal. A vote always weighs the voter's entire
available balance, and that balance is staked for the lifetime of the
proposal.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..errors.exceptions import (
    AlreadyVoted,
    NoAvailableTokens,
    NotADelegate,
    NotAMember,
    SelfDelegation,
    UserHasDelegatedTheVote,
    VotingClosed,
)
from .core import Clock, Proposal, VoteChoice
from .delegation import Delegation, DelegationRegistry, MembershipPolicy
from .observability import EventType, GovernanceEvents
from .proposal import ProposalStore
from .staking import StakeLedger


@dataclass
class VoteReceipt:
    """Proof that a member has voted on a proposal."""

    member: str
    proposal_id: int
    choice: VoteChoice
    weight: int
    voted_at: int
    # Delegate that cast this vote on the member's behalf
    via_delegate: Optional[str] = None
    # Receipt of a delegate for the combined vote they cast
    as_delegate: bool = False

    @property
    def is_direct(self) -> bool:
        return self.via_delegate is None and not self.as_delegate


class VotingEngine:
    """Direct and delegated voting with exactly-once receipts."""

    def __init__(
        self,
        store: ProposalStore,
        stakes: StakeLedger,
        delegations: DelegationRegistry,
        membership: MembershipPolicy,
        clock: Clock,
        events: Optional[GovernanceEvents] = None,
    ):
        self.store = store
        self.stakes = stakes
        self.delegations = delegations
        self.membership = membership
        self.clock = clock
        self.events = events
        self._receipts: Dict[int, Dict[str, VoteReceipt]] = {}

    def create_proposal(self, creator: str, description: str) -> int:
        """Create a proposal on behalf of a member."""
        now = self.clock.now()
        self.membership.require_member(creator, NotAMember)

        proposal_id = self.store.create(description, creator, now)
        self._emit(
            EventType.PROPOSAL_CREATED,
            now,
            proposal_id=proposal_id,
            member_address=creator,
            metadata={"description": description},
        )
        return proposal_id

    def vote_on_proposal(self, voter: str, proposal_id: int, support: bool) -> VoteReceipt:
        """Cast a direct vote with the voter's whole available balance."""
        now = self.clock.now()

        if self.delegations.has_delegated(voter):
            raise UserHasDelegatedTheVote(
                f"{voter} has delegated the vote to {self.delegations.delegate_of(voter)}",
                proposal_id=proposal_id,
                member=voter,
            )

        if self.has_voted(voter, proposal_id):
            raise AlreadyVoted(
                f"{voter} already voted on proposal {proposal_id}",
                proposal_id=proposal_id,
                member=voter,
            )

        self._require_open(self.store.get(proposal_id), now)
        weight = self.membership.require_member(voter, NoAvailableTokens, proposal_id)

        self.stakes.lock(voter, weight, proposal_id, now)
        receipt = self._issue_receipt(voter, proposal_id, support, weight, now)
        self.store.record_vote(proposal_id, support, weight, now)

        logger.info(
            f"{voter} voted {receipt.choice.value} on proposal {proposal_id} with weight {weight}"
        )
        self._emit(EventType.STAKE_LOCKED, now, proposal_id=proposal_id, member_address=voter, amount=weight)
        self._emit(
            EventType.VOTE_CAST,
            now,
            proposal_id=proposal_id,
            member_address=voter,
            amount=weight,
            metadata={"choice": receipt.choice.value},
        )
        return receipt

    def delegate_vote(self, delegator: str, delegatee: str) -> Delegation:
        """Hand the delegator's voting rights to ``delegatee``."""
        now = self.clock.now()

        if delegator == delegatee:
            raise SelfDelegation("Cannot delegate to self", member=delegator)

        self.membership.require_member(delegator, NotAMember)

        open_votes = [
            receipt.proposal_id
            for receipt in self._direct_receipts(delegator)
            if self.store.get(receipt.proposal_id).is_voting_open(now)
        ]
        if open_votes:
            raise AlreadyVoted(
                f"{delegator} already voted directly on open proposal {open_votes[0]}",
                proposal_id=open_votes[0],
                member=delegator,
            )

        delegation = self.delegations.delegate(delegator, delegatee, now)
        self._emit(
            EventType.DELEGATION_CREATED,
            now,
            member_address=delegator,
            delegatee_address=delegatee,
        )
        return delegation

    def revoke_delegation(self, delegator: str) -> Optional[str]:
        """Withdraw the delegator's delegation, restoring direct voting."""
        now = self.clock.now()
        former = self.delegations.revoke(delegator)
        if former is not None:
            self._emit(
                EventType.DELEGATION_REVOKED,
                now,
                member_address=delegator,
                delegatee_address=former,
            )
        return former

    def vote_as_a_delegate(self, delegate: str, proposal_id: int, support: bool) -> VoteReceipt:
        """Cast one combined vote for every delegator who has not voted yet.

        Each captured delegator's own balance is staked under their name and
        they receive a receipt, so they can neither vote directly nor be
        captured again on this proposal.
        """
        now = self.clock.now()

        delegators = self.delegations.delegators_of(delegate)
        if not delegators:
            raise NotADelegate(
                f"{delegate} is not the delegate of any member",
                proposal_id=proposal_id,
                member=delegate,
            )

        if self.has_voted(delegate, proposal_id):
            raise AlreadyVoted(
                f"{delegate} already voted on proposal {proposal_id}",
                proposal_id=proposal_id,
                member=delegate,
            )

        self._require_open(self.store.get(proposal_id), now)

        captured: Dict[str, int] = {}
        for delegator in delegators:
            if self.has_voted(delegator, proposal_id):
                continue
            balance = self.membership.available_balance(delegator)
            if balance > 0:
                captured[delegator] = balance

        total = sum(captured.values())
        if total == 0:
            raise NoAvailableTokens(
                f"No delegator of {delegate} has tokens left to vote on proposal {proposal_id}",
                proposal_id=proposal_id,
                member=delegate,
            )

        self.stakes.lock_many(captured, proposal_id, now)
        for delegator, weight in captured.items():
            self._issue_receipt(delegator, proposal_id, support, weight, now, via_delegate=delegate)
            self.delegations.record_capture(proposal_id, delegator, delegate)
        self.store.record_vote(proposal_id, support, total, now)
        receipt = self._issue_receipt(delegate, proposal_id, support, total, now, as_delegate=True)

        logger.info(
            f"{delegate} voted {receipt.choice.value} on proposal {proposal_id} "
            f"for {len(captured)} delegators with weight {total}"
        )
        for delegator, weight in captured.items():
            self._emit(
                EventType.STAKE_LOCKED,
                now,
                proposal_id=proposal_id,
                member_address=delegator,
                delegatee_address=delegate,
                amount=weight,
            )
        self._emit(
            EventType.DELEGATE_VOTE_CAST,
            now,
            proposal_id=proposal_id,
            member_address=delegate,
            amount=total,
            metadata={"choice": receipt.choice.value, "delegators": sorted(captured)},
        )
        return receipt

    def has_voted(self, member: str, proposal_id: int) -> bool:
        return member in self._receipts.get(proposal_id, {})

    def receipt(self, member: str, proposal_id: int) -> Optional[VoteReceipt]:
        return self._receipts.get(proposal_id, {}).get(member)

    def voters_for(self, proposal_id: int) -> List[str]:
        """Members holding a receipt for the proposal, in voting order."""
        return list(self._receipts.get(proposal_id, {}))

    def _issue_receipt(
        self,
        member: str,
        proposal_id: int,
        support: bool,
        weight: int,
        now: int,
        via_delegate: Optional[str] = None,
        as_delegate: bool = False,
    ) -> VoteReceipt:
        receipt = VoteReceipt(
            member=member,
            proposal_id=proposal_id,
            choice=VoteChoice.from_support(support),
            weight=weight,
            voted_at=now,
            via_delegate=via_delegate,
            as_delegate=as_delegate,
        )
        self._receipts.setdefault(proposal_id, {})[member] = receipt
        return receipt

    def _direct_receipts(self, member: str) -> List[VoteReceipt]:
        return [
            receipts[member]
            for receipts in self._receipts.values()
            if member in receipts and receipts[member].is_direct
        ]

    @staticmethod
    def _require_open(proposal: Proposal, now: int) -> None:
        if not proposal.is_voting_open(now):
            raise VotingClosed(
                f"Voting on proposal {proposal.proposal_id} closed at {proposal.end_voting_timestamp}",
                proposal_id=proposal.proposal_id,
            )

    def _emit(self, event_type: EventType, now: int, **kwargs) -> None:
        if self.events is not None:
            self.events.emit_event(event_type, timestamp=now, **kwargs)
