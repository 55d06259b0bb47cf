"""
Governance DAO facade.

Wires the proposal store, stake ledger, delegation registry, voting engine
and timelock governor together and exposes the public operation and query
surface. Operations are serialized: each one runs to completion under a
single re-entrant lock before the next begins.
"""

import logging

logger = logging.getLogger(__name__)
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import List, Optional, Tuple

from ..errors.exceptions import StakeGovError
from ..token.ledger import TokenLedger
from .access import Ownership
from .core import Clock, GovernanceConfig, Proposal, ProposalState, SystemClock
from .delegation import Delegation, DelegationRegistry, MembershipPolicy
from .execution import ExecutionResult, TimelockGovernor
from .observability import GovernanceEvents
from .proposal import ProposalStore
from .staking import StakeLedger
from .voting import VoteReceipt, VotingEngine


class GovernanceDao:
    """Token-weighted governance with staking, delegation and a timelock."""

    def __init__(
        self,
        token: TokenLedger,
        ownership: Ownership,
        config: Optional[GovernanceConfig] = None,
        clock: Optional[Clock] = None,
        address: str = "dao:governance",
        events: Optional[GovernanceEvents] = None,
    ):
        self.config = config or GovernanceConfig()
        self.clock = clock or SystemClock()
        self.events = events or GovernanceEvents()
        self.token = token
        self.ownership = ownership
        self.address = address

        self.store = ProposalStore(self.config)
        self.stakes = StakeLedger(token, escrow_address=address)
        self.delegations = DelegationRegistry()
        self.membership = MembershipPolicy(token)
        self.voting = VotingEngine(
            self.store,
            self.stakes,
            self.delegations,
            self.membership,
            self.clock,
            self.events,
        )
        self.governor = TimelockGovernor(
            self.store,
            self.stakes,
            ownership,
            self.clock,
            self.config,
            self.events,
        )

        self._lock = threading.RLock()

    # Operations

    @contextmanager
    def _operation(self, operation: str, caller: Optional[str] = None, proposal_id: Optional[int] = None):
        """Serialize an operation and tag any error it raises with where it failed."""
        with self._lock:
            try:
                yield
            except StakeGovError as e:
                if e.context.operation is None:
                    e.context.component = "dao"
                    e.context.operation = operation
                    e.context.caller = caller
                    e.context.proposal_id = proposal_id
                raise

    def create_proposal(self, caller: str, description: str) -> int:
        with self._operation("create_proposal", caller):
            return self.voting.create_proposal(caller, description)

    def vote_on_proposal(self, caller: str, proposal_id: int, support: bool) -> VoteReceipt:
        with self._operation("vote_on_proposal", caller, proposal_id):
            return self.voting.vote_on_proposal(caller, proposal_id, support)

    def delegate_vote(self, caller: str, delegate: str) -> Delegation:
        with self._operation("delegate_vote", caller):
            return self.voting.delegate_vote(caller, delegate)

    def revoke_delegation(self, caller: str) -> Optional[str]:
        with self._operation("revoke_delegation", caller):
            return self.voting.revoke_delegation(caller)

    def vote_as_a_delegate(self, caller: str, proposal_id: int, support: bool) -> VoteReceipt:
        with self._operation("vote_as_a_delegate", caller, proposal_id):
            return self.voting.vote_as_a_delegate(caller, proposal_id, support)

    def execute_proposal(self, caller: str, proposal_id: int) -> ExecutionResult:
        with self._operation("execute_proposal", caller, proposal_id):
            return self.governor.execute_proposal(caller, proposal_id)

    def finalize_proposal(self, proposal_id: int) -> ExecutionResult:
        with self._operation("finalize_proposal", proposal_id=proposal_id):
            return self.governor.finalize_proposal(proposal_id)

    def set_timelock_duration(self, caller: str, days: int) -> int:
        with self._operation("set_timelock_duration", caller):
            return self.governor.set_timelock_duration(caller, days)

    # Queries

    def get_specific_proposal(self, proposal_id: int) -> Proposal:
        """A snapshot of the proposal; mutating it does not affect the DAO."""
        with self._lock:
            return replace(self.store.get(proposal_id))

    def get_list_of_all_proposals(self) -> List[Proposal]:
        with self._lock:
            return [replace(proposal) for proposal in self.store.list_all()]

    def get_proposal_votes(self, proposal_id: int) -> int:
        """Total weight cast on the proposal, for and against."""
        with self._lock:
            return self.store.get(proposal_id).total_votes()

    def get_proposal_tally(self, proposal_id: int) -> Tuple[int, int]:
        with self._lock:
            proposal = self.store.get(proposal_id)
            return proposal.for_votes, proposal.against_votes

    def get_proposal_vote_for_percentage(self, proposal_id: int) -> int:
        with self._lock:
            return self.store.get(proposal_id).for_percentage()

    def get_proposal_state(self, proposal_id: int) -> ProposalState:
        with self._lock:
            return self.governor.state_of(proposal_id)

    def get_has_voted(self, member: str, proposal_id: int) -> bool:
        with self._lock:
            return self.voting.has_voted(member, proposal_id)

    def get_user_staked_tokens(self, member: str) -> int:
        with self._lock:
            return self.stakes.amount_for(member)

    def get_delegate(self, member: str) -> Optional[str]:
        with self._lock:
            return self.delegations.delegate_of(member)

    def get_timelock_duration(self) -> int:
        with self._lock:
            return self.governor.get_timelock_duration()

    def get_voting_duration(self) -> int:
        return self.config.voting_duration
