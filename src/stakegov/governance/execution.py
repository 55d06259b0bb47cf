"""
Timelocked proposal execution.

A proposal moves VOTING -> TIMELOCKED -> MATURED -> EXECUTED. Once matured it
can be executed by the owner if a strict majority of cast weight is in
favour, or finalized by anyone. Both paths return the stake tied to the
proposal; a failing execution changes nothing.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from ..errors.exceptions import (
    ProposalAlreadyExecuted,
    ProposalDidNotPass,
    VotingStillInProgress,
    create_validation_error,
)
from .access import Ownership
from .core import SECONDS_PER_DAY, Clock, GovernanceConfig, Proposal, ProposalState
from .observability import EventType, GovernanceEvents
from .proposal import ProposalStore
from .staking import StakeLedger


class ExecutionStatus(Enum):
    """Outcome of a governor call."""

    EXECUTED = "executed"
    FINALIZED = "finalized"


@dataclass
class ExecutionResult:
    """Result of executing or finalizing a proposal."""

    proposal_id: int
    status: ExecutionStatus
    completed_at: int
    for_votes: int
    against_votes: int
    released: Dict[str, int] = field(default_factory=dict)

    def is_successful(self) -> bool:
        """Check if the proposal was executed."""
        return self.status == ExecutionStatus.EXECUTED

    def total_released(self) -> int:
        return sum(self.released.values())


class TimelockGovernor:
    """Enforces the timelock and the pass rule; executes at most once."""

    def __init__(
        self,
        store: ProposalStore,
        stakes: StakeLedger,
        ownership: Ownership,
        clock: Clock,
        config: GovernanceConfig,
        events: Optional[GovernanceEvents] = None,
    ):
        self.store = store
        self.stakes = stakes
        self.ownership = ownership
        self.clock = clock
        self.events = events
        self._timelock_duration = config.timelock_duration

    def execute_proposal(self, caller: str, proposal_id: int) -> ExecutionResult:
        """Execute a matured, passing proposal and release its stake. Owner only."""
        now = self.clock.now()
        self.ownership.require_owner(caller, "execute proposals")

        proposal = self.store.get(proposal_id)
        self._require_matured(proposal, now)

        if proposal.executed:
            raise ProposalAlreadyExecuted(
                f"Proposal {proposal_id} was executed at {proposal.executed_at}",
                proposal_id=proposal_id,
            )

        if not proposal.is_passing():
            raise ProposalDidNotPass(
                f"Proposal {proposal_id} did not pass "
                f"({proposal.for_votes} for, {proposal.against_votes} against)",
                proposal_id=proposal_id,
            )

        self.store.mark_executed(proposal_id, now)
        released = self._release_stakes(proposal, now)

        logger.info(f"Proposal {proposal_id} executed by {caller}")
        self._emit(
            EventType.PROPOSAL_EXECUTED,
            now,
            proposal_id=proposal_id,
            member_address=caller,
            amount=proposal.for_votes,
            metadata={"against_votes": proposal.against_votes},
        )
        return ExecutionResult(
            proposal_id=proposal_id,
            status=ExecutionStatus.EXECUTED,
            completed_at=now,
            for_votes=proposal.for_votes,
            against_votes=proposal.against_votes,
            released=released,
        )

    def finalize_proposal(self, proposal_id: int) -> ExecutionResult:
        """Return every stake tied to a matured proposal, whatever its outcome.

        Safe to call repeatedly; later calls release nothing.
        """
        now = self.clock.now()
        proposal = self.store.get(proposal_id)
        self._require_matured(proposal, now)

        first_finalization = not proposal.stake_released
        released = self._release_stakes(proposal, now)

        if first_finalization or released:
            logger.info(
                f"Proposal {proposal_id} finalized, released {sum(released.values())} tokens"
            )
            self._emit(
                EventType.PROPOSAL_FINALIZED,
                now,
                proposal_id=proposal_id,
                amount=sum(released.values()),
                metadata={"passed": proposal.is_passing(), "executed": proposal.executed},
            )
        return ExecutionResult(
            proposal_id=proposal_id,
            status=ExecutionStatus.FINALIZED,
            completed_at=now,
            for_votes=proposal.for_votes,
            against_votes=proposal.against_votes,
            released=released,
        )

    def set_timelock_duration(self, caller: str, days: int) -> int:
        """Set the timelock, given in days. Owner only. Returns the new value in seconds."""
        now = self.clock.now()
        self.ownership.require_owner(caller, "set the timelock duration")

        if days < 0:
            raise create_validation_error(
                "days", days, "a non-negative number of days", "Timelock duration cannot be negative"
            )

        previous = self._timelock_duration
        self._timelock_duration = days * SECONDS_PER_DAY

        logger.info(f"Timelock duration changed from {previous}s to {self._timelock_duration}s")
        self._emit(
            EventType.TIMELOCK_UPDATED,
            now,
            member_address=caller,
            amount=self._timelock_duration,
            metadata={"previous": previous},
        )
        return self._timelock_duration

    def get_timelock_duration(self) -> int:
        return self._timelock_duration

    def is_passing(self, proposal_id: int) -> bool:
        return self.store.get(proposal_id).is_passing()

    def state_of(self, proposal_id: int) -> ProposalState:
        return self.store.get(proposal_id).state(self.clock.now(), self._timelock_duration)

    def _require_matured(self, proposal: Proposal, now: int) -> None:
        # The timelock is read now, not when the proposal was created.
        matures_at = proposal.matures_at(self._timelock_duration)
        if now < matures_at:
            raise VotingStillInProgress(
                f"Proposal {proposal.proposal_id} matures at {matures_at}",
                proposal_id=proposal.proposal_id,
            )

    def _release_stakes(self, proposal: Proposal, now: int) -> Dict[str, int]:
        released: Dict[str, int] = {}
        for member in self.stakes.stakers_for(proposal.proposal_id):
            amount = self.stakes.release(member, proposal.proposal_id)
            if amount:
                released[member] = amount
                self._emit(
                    EventType.STAKE_RELEASED,
                    now,
                    proposal_id=proposal.proposal_id,
                    member_address=member,
                    amount=amount,
                )
        self.store.mark_stake_released(proposal.proposal_id)
        return released

    def _emit(self, event_type: EventType, now: int, **kwargs) -> None:
        if self.events is not None:
            self.events.emit_event(event_type, timestamp=now, **kwargs)
