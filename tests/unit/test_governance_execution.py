"""
Unit tests for the timelock governor.

This module tests execution and finalization of matured proposals, the
pass rule and timelock configuration.
"""

import logging

logger = logging.getLogger(__name__)
import pytest

from stakegov.governance.access import Ownership
from stakegov.governance.core import (
    SECONDS_PER_DAY,
    GovernanceConfig,
    ManualClock,
    ProposalState,
)
from stakegov.governance.execution import ExecutionStatus, TimelockGovernor
from stakegov.governance.observability import EventType, GovernanceEvents
from stakegov.governance.proposal import ProposalStore
from stakegov.governance.staking import StakeLedger
from stakegov.token.ledger import InMemoryTokenLedger
from stakegov.errors.exceptions import (
    NotOwner,
    ProposalAlreadyExecuted,
    ProposalDidNotPass,
    ProposalNotFound,
    ValidationError,
    VotingStillInProgress,
)

OWNER = "0xowner"
ESCROW = "dao:governance"
START = 1_700_000_000
VOTING = 100
TIMELOCK = 50


class GovernorHarness:
    """Small wiring of store, stakes and governor with helpers to cast votes."""

    def __init__(self):
        self.clock = ManualClock(START)
        self.events = GovernanceEvents()
        self.token = InMemoryTokenLedger("GovernanceToken", "GTK")
        config = GovernanceConfig(voting_duration=VOTING, timelock_duration=TIMELOCK)
        self.store = ProposalStore(config)
        self.stakes = StakeLedger(self.token, ESCROW)
        self.governor = TimelockGovernor(
            self.store,
            self.stakes,
            Ownership(OWNER),
            self.clock,
            config,
            self.events,
        )

    def proposal(self) -> int:
        return self.store.create("Proposal", "0xalice", self.clock.now())

    def vote(self, member: str, proposal_id: int, support: bool, amount: int) -> None:
        self.token._mint(member, amount)
        self.token.approve(member, ESCROW, amount)
        self.stakes.lock(member, amount, proposal_id, self.clock.now())
        self.store.record_vote(proposal_id, support, amount, self.clock.now())

    def mature(self) -> None:
        self.clock.advance(VOTING + TIMELOCK)


@pytest.fixture
def harness():
    return GovernorHarness()


class TestExecuteProposal:
    """Test TimelockGovernor.execute_proposal."""

    def test_execute_passing_proposal(self, harness):
        """Test that a matured majority proposal executes and returns stake."""
        proposal_id = harness.proposal()
        harness.vote("0xalice", proposal_id, True, 300)
        harness.vote("0xbob", proposal_id, False, 100)
        harness.mature()

        result = harness.governor.execute_proposal(OWNER, proposal_id)

        assert result.is_successful() is True
        assert result.status == ExecutionStatus.EXECUTED
        assert result.released == {"0xalice": 300, "0xbob": 100}
        assert result.total_released() == 400
        assert harness.store.get(proposal_id).executed is True
        assert harness.token.balance_of("0xalice") == 300
        assert harness.token.balance_of("0xbob") == 100
        assert harness.token.balance_of(ESCROW) == 0

    def test_only_owner(self, harness):
        proposal_id = harness.proposal()
        harness.vote("0xalice", proposal_id, True, 300)
        harness.mature()

        with pytest.raises(NotOwner):
            harness.governor.execute_proposal("0xalice", proposal_id)

        assert harness.store.get(proposal_id).executed is False

    def test_unknown_proposal(self, harness):
        with pytest.raises(ProposalNotFound):
            harness.governor.execute_proposal(OWNER, 3)

    @pytest.mark.parametrize("elapsed", [0, VOTING - 1, VOTING, VOTING + TIMELOCK - 1])
    def test_before_maturity(self, harness, elapsed):
        """Test that execution is refused until the timelock has elapsed."""
        proposal_id = harness.proposal()
        harness.vote("0xalice", proposal_id, True, 300)
        harness.clock.advance(elapsed)

        with pytest.raises(VotingStillInProgress):
            harness.governor.execute_proposal(OWNER, proposal_id)

    def test_execute_exactly_at_maturity(self, harness):
        proposal_id = harness.proposal()
        harness.vote("0xalice", proposal_id, True, 300)
        harness.mature()

        assert harness.governor.execute_proposal(OWNER, proposal_id).is_successful()

    def test_execute_twice(self, harness):
        proposal_id = harness.proposal()
        harness.vote("0xalice", proposal_id, True, 300)
        harness.mature()
        harness.governor.execute_proposal(OWNER, proposal_id)

        with pytest.raises(ProposalAlreadyExecuted):
            harness.governor.execute_proposal(OWNER, proposal_id)

        assert harness.token.balance_of("0xalice") == 300

    @pytest.mark.parametrize("for_votes,against_votes", [(100, 300), (200, 200)])
    def test_did_not_pass(self, harness, for_votes, against_votes):
        """Test that a losing or tied proposal cannot be executed."""
        proposal_id = harness.proposal()
        harness.vote("0xalice", proposal_id, True, for_votes)
        harness.vote("0xbob", proposal_id, False, against_votes)
        harness.mature()

        with pytest.raises(ProposalDidNotPass):
            harness.governor.execute_proposal(OWNER, proposal_id)

        assert harness.store.get(proposal_id).executed is False
        assert harness.stakes.amount_for("0xalice") == for_votes

    def test_no_votes_does_not_pass(self, harness):
        proposal_id = harness.proposal()
        harness.mature()

        with pytest.raises(ProposalDidNotPass):
            harness.governor.execute_proposal(OWNER, proposal_id)

    def test_execute_emits_events(self, harness):
        proposal_id = harness.proposal()
        harness.vote("0xalice", proposal_id, True, 300)
        harness.mature()

        harness.governor.execute_proposal(OWNER, proposal_id)

        trail = harness.events.get_audit_trail()
        assert len(trail.get_events_of_type(EventType.PROPOSAL_EXECUTED)) == 1
        released = trail.get_events_of_type(EventType.STAKE_RELEASED)
        assert [(e.member_address, e.amount) for e in released] == [("0xalice", 300)]


class TestFinalizeProposal:
    """Test TimelockGovernor.finalize_proposal."""

    def test_finalize_failed_proposal_returns_stake(self, harness):
        proposal_id = harness.proposal()
        harness.vote("0xbob", proposal_id, False, 100)
        harness.mature()

        result = harness.governor.finalize_proposal(proposal_id)

        assert result.status == ExecutionStatus.FINALIZED
        assert result.is_successful() is False
        assert result.released == {"0xbob": 100}
        assert harness.token.balance_of("0xbob") == 100
        assert harness.store.get(proposal_id).stake_released is True

    def test_finalize_is_idempotent(self, harness):
        """Test that repeated finalization releases nothing more."""
        proposal_id = harness.proposal()
        harness.vote("0xbob", proposal_id, False, 100)
        harness.mature()

        harness.governor.finalize_proposal(proposal_id)
        result = harness.governor.finalize_proposal(proposal_id)

        assert result.released == {}
        assert harness.token.balance_of("0xbob") == 100
        finalized = harness.events.get_audit_trail().get_events_of_type(EventType.PROPOSAL_FINALIZED)
        assert len(finalized) == 1

    def test_finalize_after_execute(self, harness):
        proposal_id = harness.proposal()
        harness.vote("0xalice", proposal_id, True, 300)
        harness.mature()
        harness.governor.execute_proposal(OWNER, proposal_id)

        assert harness.governor.finalize_proposal(proposal_id).released == {}

    def test_finalize_before_maturity(self, harness):
        proposal_id = harness.proposal()
        harness.vote("0xbob", proposal_id, False, 100)
        harness.clock.advance(VOTING)

        with pytest.raises(VotingStillInProgress):
            harness.governor.finalize_proposal(proposal_id)

        assert harness.stakes.amount_for("0xbob") == 100

    def test_finalize_leaves_other_proposals(self, harness):
        """Test that only stake tied to the finalized proposal is returned."""
        first = harness.proposal()
        harness.vote("0xbob", first, False, 100)
        harness.clock.advance(10)
        second = harness.proposal()
        harness.vote("0xcarol", second, True, 50)
        harness.clock.advance(VOTING + TIMELOCK - 10)

        harness.governor.finalize_proposal(first)

        assert harness.stakes.amount_for("0xbob") == 0
        assert harness.stakes.amount_for("0xcarol") == 50


class TestTimelockDuration:
    """Test timelock configuration."""

    def test_set_timelock_in_days(self, harness):
        assert harness.governor.set_timelock_duration(OWNER, 3) == 3 * SECONDS_PER_DAY
        assert harness.governor.get_timelock_duration() == 3 * SECONDS_PER_DAY

    def test_set_timelock_not_owner(self, harness):
        with pytest.raises(NotOwner):
            harness.governor.set_timelock_duration("0xalice", 3)

        assert harness.governor.get_timelock_duration() == TIMELOCK

    def test_negative_timelock(self, harness):
        with pytest.raises(ValidationError) as exc_info:
            harness.governor.set_timelock_duration(OWNER, -1)

        assert exc_info.value.field == "days"
        assert exc_info.value.value == -1
        assert harness.governor.get_timelock_duration() == TIMELOCK

    def test_zero_timelock(self, harness):
        """Test that with no timelock a proposal matures when voting ends."""
        proposal_id = harness.proposal()
        harness.vote("0xalice", proposal_id, True, 300)
        harness.governor.set_timelock_duration(OWNER, 0)
        harness.clock.advance(VOTING)

        assert harness.governor.state_of(proposal_id) == ProposalState.MATURED
        assert harness.governor.execute_proposal(OWNER, proposal_id).is_successful()

    def test_timelock_applies_to_existing_proposals(self, harness):
        """Test that a longer timelock delays proposals created earlier."""
        proposal_id = harness.proposal()
        harness.vote("0xalice", proposal_id, True, 300)
        harness.governor.set_timelock_duration(OWNER, 1)
        harness.mature()

        assert harness.governor.state_of(proposal_id) == ProposalState.TIMELOCKED
        with pytest.raises(VotingStillInProgress):
            harness.governor.execute_proposal(OWNER, proposal_id)

    def test_timelock_event(self, harness):
        harness.governor.set_timelock_duration(OWNER, 2)

        updated = harness.events.get_audit_trail().get_events_of_type(EventType.TIMELOCK_UPDATED)
        assert updated[0].amount == 2 * SECONDS_PER_DAY
        assert updated[0].metadata["previous"] == TIMELOCK
