"""
Core governance types and data structures.

This module defines the configuration, clock and proposal types shared by the
proposal store, the voting engine and the timelock governor.
"""

import logging

logger = logging.getLogger(__name__)
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..errors.exceptions import ConfigurationError, ValidationError

SECONDS_PER_DAY = 86400


class ProposalState(Enum):
    """Lifecycle state of a proposal, derived from time and the executed flag."""

    VOTING = "voting"
    TIMELOCKED = "timelocked"
    MATURED = "matured"
    EXECUTED = "executed"


class VoteChoice(Enum):
    """Vote choices for governance proposals."""

    FOR = "for"
    AGAINST = "against"

    @classmethod
    def from_support(cls, support: bool) -> "VoteChoice":
        return cls.FOR if support else cls.AGAINST


class Clock(ABC):
    """Source of the current time in whole seconds."""

    @abstractmethod
    def now(self) -> int:
        pass


class SystemClock(Clock):
    """Wall clock time."""

    def now(self) -> int:
        return int(time.time())


class ManualClock(Clock):
    """Clock that only moves when told to. Never goes backwards."""

    def __init__(self, start: Optional[int] = None):
        self._now = int(time.time()) if start is None else start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move the clock forward and return the new time."""
        if seconds < 0:
            raise ValidationError("Clock cannot move backwards", field="seconds", value=seconds)
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValidationError(
                "Clock cannot move backwards", field="timestamp", value=timestamp, expected=f">= {self._now}"
            )
        self._now = timestamp


@dataclass
class GovernanceConfig:
    """Configuration for the governance system."""

    # Length of the voting window, in seconds
    voting_duration: int = SECONDS_PER_DAY
    # Delay between the end of voting and execution, in seconds
    timelock_duration: int = SECONDS_PER_DAY
    max_description_length: int = 10000

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        if self.voting_duration <= 0:
            raise ConfigurationError(
                "Voting duration must be positive",
                config_key="voting_duration",
                config_value=self.voting_duration,
            )

        if self.timelock_duration < 0:
            raise ConfigurationError(
                "Timelock duration cannot be negative",
                config_key="timelock_duration",
                config_value=self.timelock_duration,
            )

        if self.max_description_length <= 0:
            raise ConfigurationError(
                "Max description length must be positive",
                config_key="max_description_length",
                config_value=self.max_description_length,
            )


@dataclass
class Proposal:
    """A governance proposal and its running tally."""

    proposal_id: int
    description: str
    creator: str
    created_at: int
    end_voting_timestamp: int
    for_votes: int = 0
    against_votes: int = 0
    executed: bool = False
    executed_at: Optional[int] = None
    stake_released: bool = False

    def __post_init__(self):
        if self.proposal_id < 0:
            raise ValidationError("Proposal id cannot be negative", field="proposal_id", value=self.proposal_id)

        if self.end_voting_timestamp < self.created_at:
            raise ValidationError("Voting cannot end before the proposal is created")

    def total_votes(self) -> int:
        """Total weight cast on this proposal."""
        return self.for_votes + self.against_votes

    def for_percentage(self) -> int:
        """Percentage of cast weight in favour, rounded down. 0 before any vote."""
        total = self.total_votes()
        if total == 0:
            return 0
        return self.for_votes * 100 // total

    def is_passing(self) -> bool:
        """Strict majority of cast weight; a tie does not pass."""
        return self.for_votes > self.against_votes

    def is_voting_open(self, now: int) -> bool:
        return now < self.end_voting_timestamp

    def matures_at(self, timelock_duration: int) -> int:
        return self.end_voting_timestamp + timelock_duration

    def state(self, now: int, timelock_duration: int) -> ProposalState:
        """Derive the lifecycle state at ``now``."""
        if self.executed:
            return ProposalState.EXECUTED
        if self.is_voting_open(now):
            return ProposalState.VOTING
        if now < self.matures_at(timelock_duration):
            return ProposalState.TIMELOCKED
        return ProposalState.MATURED

    def to_dict(self) -> Dict[str, Any]:
        """Convert proposal to dictionary."""
        return {
            "proposal_id": self.proposal_id,
            "description": self.description,
            "creator": self.creator,
            "created_at": self.created_at,
            "end_voting_timestamp": self.end_voting_timestamp,
            "for_votes": self.for_votes,
            "against_votes": self.against_votes,
            "executed": self.executed,
            "executed_at": self.executed_at,
            "stake_released": self.stake_released,
        }
