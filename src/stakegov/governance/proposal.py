"""
Proposal store.

Ordered, index-stable collection of governance proposals. The store is the
only owner of ``Proposal`` records: tallies are written through
``record_vote`` and the executed flag through ``mark_executed``.
"""

import logging

logger = logging.getLogger(__name__)
from typing import Iterator, List

from ..errors.exceptions import (
    EmptyDescription,
    ProposalNotFound,
    ValidationError,
    VotingClosed,
)
from .core import GovernanceConfig, Proposal


class ProposalStore:
    """Arena of proposals keyed by their sequential id."""

    def __init__(self, config: GovernanceConfig):
        self.config = config
        self._proposals: List[Proposal] = []

    def create(self, description: str, creator: str, now: int) -> int:
        """Append a new proposal and return its id.

        Membership of ``creator`` is checked by the caller.
        """
        if not description:
            raise EmptyDescription("Proposal description cannot be empty", field="description")

        if len(description) > self.config.max_description_length:
            raise ValidationError(
                f"Description must be at most {self.config.max_description_length} characters",
                field="description",
                value=len(description),
                expected=f"<= {self.config.max_description_length}",
            )

        proposal = Proposal(
            proposal_id=len(self._proposals),
            description=description,
            creator=creator,
            created_at=now,
            end_voting_timestamp=now + self.config.voting_duration,
        )
        self._proposals.append(proposal)

        logger.info(
            f"Proposal {proposal.proposal_id} created by {creator}, "
            f"voting ends at {proposal.end_voting_timestamp}"
        )
        return proposal.proposal_id

    def get(self, proposal_id: int) -> Proposal:
        """Get a proposal by id."""
        if not 0 <= proposal_id < len(self._proposals):
            raise ProposalNotFound(f"Proposal {proposal_id} not found", proposal_id=proposal_id)
        return self._proposals[proposal_id]

    def list_all(self) -> List[Proposal]:
        """All proposals in creation order."""
        return list(self._proposals)

    def record_vote(self, proposal_id: int, support: bool, weight: int, now: int) -> Proposal:
        """Add ``weight`` to the for or against side of a proposal."""
        proposal = self.get(proposal_id)

        if not proposal.is_voting_open(now):
            raise VotingClosed(
                f"Voting on proposal {proposal_id} closed at {proposal.end_voting_timestamp}",
                proposal_id=proposal_id,
            )

        if weight <= 0:
            raise ValidationError("Vote weight must be positive", field="weight", value=weight)

        if support:
            proposal.for_votes += weight
        else:
            proposal.against_votes += weight
        return proposal

    def mark_executed(self, proposal_id: int, now: int) -> Proposal:
        """Flag a proposal as executed. Preconditions are checked by the governor."""
        proposal = self.get(proposal_id)
        proposal.executed = True
        proposal.executed_at = now
        return proposal

    def mark_stake_released(self, proposal_id: int) -> Proposal:
        proposal = self.get(proposal_id)
        proposal.stake_released = True
        return proposal

    def __len__(self) -> int:
        return len(self._proposals)

    def __iter__(self) -> Iterator[Proposal]:
        return iter(list(self._proposals))
