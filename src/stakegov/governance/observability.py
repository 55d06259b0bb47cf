"""
Observability and audit trail system for governance.

Every committed governance operation emits a ``GovernanceEvent``. Events are
hash-chained into an ``AuditTrail`` so that tampering with history is
detectable, fanned out to listeners, and folded into ``GovernanceMetrics``.
"""

import logging

logger = logging.getLogger(__name__)
import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from ..crypto.hashing import SHA256Hasher


class EventType(Enum):
    """Types of governance events."""

    PROPOSAL_CREATED = "proposal_created"
    PROPOSAL_EXECUTED = "proposal_executed"
    PROPOSAL_FINALIZED = "proposal_finalized"

    VOTE_CAST = "vote_cast"
    DELEGATE_VOTE_CAST = "delegate_vote_cast"

    DELEGATION_CREATED = "delegation_created"
    DELEGATION_REVOKED = "delegation_revoked"

    STAKE_LOCKED = "stake_locked"
    STAKE_RELEASED = "stake_released"

    TIMELOCK_UPDATED = "timelock_updated"

    TOKENS_PURCHASED = "tokens_purchased"
    TOKEN_PRICE_UPDATED = "token_price_updated"
    SALE_CLOSED = "sale_closed"


@dataclass
class GovernanceEvent:
    """A governance event for audit trail."""

    event_type: EventType
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: float = field(default_factory=time.time)

    # Event data
    proposal_id: Optional[int] = None
    member_address: Optional[str] = None
    delegatee_address: Optional[str] = None
    amount: Optional[int] = None

    # Event metadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    # Cryptographic integrity
    event_hash: Optional[str] = None
    previous_event_hash: Optional[str] = None

    def __post_init__(self):
        """Calculate event hash after initialization."""
        self.event_hash = self._calculate_hash()

    def _calculate_hash(self) -> str:
        """Calculate hash of this event."""
        event_data = {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
            "proposal_id": self.proposal_id,
            "member_address": self.member_address,
            "delegatee_address": self.delegatee_address,
            "amount": self.amount,
            "metadata": self.metadata,
            "previous_event_hash": self.previous_event_hash,
        }

        event_json = json.dumps(event_data, sort_keys=True, default=str)
        return str(SHA256Hasher.hash(event_json))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
            "proposal_id": self.proposal_id,
            "member_address": self.member_address,
            "delegatee_address": self.delegatee_address,
            "amount": self.amount,
            "metadata": self.metadata,
            "event_hash": self.event_hash,
            "previous_event_hash": self.previous_event_hash,
        }


class AuditTrail:
    """Maintains an append-only, hash-chained trail of governance events."""

    def __init__(self):
        """Initialize audit trail."""
        self.events: List[GovernanceEvent] = []
        self.event_index: Dict[str, int] = {}  # event_id -> index
        self.proposal_events: Dict[int, List[GovernanceEvent]] = {}
        self.member_events: Dict[str, List[GovernanceEvent]] = {}

    def add_event(self, event: GovernanceEvent) -> None:
        """Add an event to the audit trail."""
        if self.events:
            event.previous_event_hash = self.events[-1].event_hash

        # Recalculate hash with previous event hash
        event.event_hash = event._calculate_hash()

        self.events.append(event)
        self.event_index[event.event_id] = len(self.events) - 1

        if event.proposal_id is not None:
            self.proposal_events.setdefault(event.proposal_id, []).append(event)

        if event.member_address:
            self.member_events.setdefault(event.member_address, []).append(event)

    def get_event(self, event_id: str) -> Optional[GovernanceEvent]:
        """Get an event by ID."""
        if event_id in self.event_index:
            return self.events[self.event_index[event_id]]
        return None

    def get_proposal_events(self, proposal_id: int) -> List[GovernanceEvent]:
        """Get all events for a proposal."""
        return self.proposal_events.get(proposal_id, [])

    def get_member_events(self, member_address: str) -> List[GovernanceEvent]:
        """Get all events for a member."""
        return self.member_events.get(member_address, [])

    def get_events_of_type(self, event_type: EventType) -> List[GovernanceEvent]:
        return [event for event in self.events if event.event_type == event_type]

    def verify_integrity(self) -> bool:
        """Verify the integrity of the audit trail."""
        for i, event in enumerate(self.events):
            if event.event_hash != event._calculate_hash():
                return False

            if i > 0 and event.previous_event_hash != self.events[i - 1].event_hash:
                return False

        return True

    def get_audit_summary(self) -> Dict[str, Any]:
        """Get audit trail summary."""
        event_counts: Dict[str, int] = {}
        for event in self.events:
            event_type = event.event_type.value
            event_counts[event_type] = event_counts.get(event_type, 0) + 1

        return {
            "total_events": len(self.events),
            "event_counts": event_counts,
            "unique_proposals": len(self.proposal_events),
            "unique_members": len(self.member_events),
            "integrity_verified": self.verify_integrity(),
        }


@dataclass
class GovernanceMetrics:
    """Governance system counters."""

    total_proposals: int = 0
    executed_proposals: int = 0
    finalized_proposals: int = 0

    total_votes: int = 0
    delegate_votes: int = 0
    total_voting_power: int = 0

    total_delegations: int = 0
    revoked_delegations: int = 0

    total_staked: int = 0
    total_released: int = 0

    tokens_sold: int = 0

    last_updated: float = field(default_factory=time.time)

    def record(self, event: GovernanceEvent) -> None:
        """Fold an event into the counters."""
        amount = event.amount or 0

        if event.event_type == EventType.PROPOSAL_CREATED:
            self.total_proposals += 1
        elif event.event_type == EventType.PROPOSAL_EXECUTED:
            self.executed_proposals += 1
        elif event.event_type == EventType.PROPOSAL_FINALIZED:
            self.finalized_proposals += 1
        elif event.event_type == EventType.VOTE_CAST:
            self.total_votes += 1
            self.total_voting_power += amount
        elif event.event_type == EventType.DELEGATE_VOTE_CAST:
            self.delegate_votes += 1
            self.total_voting_power += amount
        elif event.event_type == EventType.DELEGATION_CREATED:
            self.total_delegations += 1
        elif event.event_type == EventType.DELEGATION_REVOKED:
            self.revoked_delegations += 1
        elif event.event_type == EventType.STAKE_LOCKED:
            self.total_staked += amount
        elif event.event_type == EventType.STAKE_RELEASED:
            self.total_released += amount
        elif event.event_type == EventType.TOKENS_PURCHASED:
            self.tokens_sold += amount

        self.last_updated = time.time()

    def outstanding_stake(self) -> int:
        return self.total_staked - self.total_released

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "total_proposals": self.total_proposals,
            "executed_proposals": self.executed_proposals,
            "finalized_proposals": self.finalized_proposals,
            "total_votes": self.total_votes,
            "delegate_votes": self.delegate_votes,
            "total_voting_power": self.total_voting_power,
            "total_delegations": self.total_delegations,
            "revoked_delegations": self.revoked_delegations,
            "total_staked": self.total_staked,
            "total_released": self.total_released,
            "tokens_sold": self.tokens_sold,
            "last_updated": self.last_updated,
        }


EventListener = Callable[[GovernanceEvent], None]


class GovernanceEvents:
    """Event system for governance observability."""

    def __init__(self):
        """Initialize governance events system."""
        self.audit_trail = AuditTrail()
        self.metrics = GovernanceMetrics()
        self.event_listeners: Dict[EventType, List[EventListener]] = {}

    def add_event_listener(self, event_type: EventType, listener: EventListener) -> None:
        """Add an event listener."""
        self.event_listeners.setdefault(event_type, []).append(listener)

    def emit_event(
        self,
        event_type: EventType,
        proposal_id: Optional[int] = None,
        member_address: Optional[str] = None,
        delegatee_address: Optional[str] = None,
        amount: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
        timestamp: Optional[float] = None,
    ) -> GovernanceEvent:
        """Emit a governance event. Called only after the operation committed."""
        event = GovernanceEvent(
            event_type=event_type,
            proposal_id=proposal_id,
            member_address=member_address,
            delegatee_address=delegatee_address,
            amount=amount,
            metadata=metadata or {},
        )
        if timestamp is not None:
            event.timestamp = timestamp

        self.audit_trail.add_event(event)
        self.metrics.record(event)

        for listener in self.event_listeners.get(event_type, []):
            try:
                listener(event)
            except Exception as e:
                # State is already committed; a listener cannot undo it.
                logger.warning(f"Error in event listener for {event_type.value}: {e}")

        return event

    def get_audit_trail(self) -> AuditTrail:
        """Get the audit trail."""
        return self.audit_trail

    def get_metrics(self) -> GovernanceMetrics:
        """Get governance metrics."""
        return self.metrics

    def verify_audit_integrity(self) -> bool:
        """Verify the integrity of the audit trail."""
        return self.audit_trail.verify_integrity()
