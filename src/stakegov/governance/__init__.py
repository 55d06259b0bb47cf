"""
Token-weighted governance for stakegov.

This package provides:
- Proposal lifecycle management with a fixed voting window
- Stake-locking votes weighted by the voter's available balance
- Vote delegation with proposal-scoped capture of delegators
- Exactly-once vote receipts across direct and delegated voting
- Timelocked, owner-gated execution with a strict-majority pass rule
- Finalization that returns stake whatever the outcome
- Hash-chained audit trail and governance metrics
"""

from .access import Ownership
from .observability import (
    AuditTrail,
    EventType,
    GovernanceEvent,
    GovernanceEvents,
    GovernanceMetrics,
)
from .core import (
    SECONDS_PER_DAY,
    Clock,
    GovernanceConfig,
    ManualClock,
    Proposal,
    ProposalState,
    SystemClock,
    VoteChoice,
)
from .proposal import ProposalStore
from .staking import StakeLedger, StakeRecord
from .delegation import Delegation, DelegationRegistry, MembershipPolicy
from .voting import VoteReceipt, VotingEngine
from .execution import ExecutionResult, ExecutionStatus, TimelockGovernor
from .dao import GovernanceDao

__all__ = [
    # Core
    "SECONDS_PER_DAY",
    "Clock",
    "SystemClock",
    "ManualClock",
    "GovernanceConfig",
    "Proposal",
    "ProposalState",
    "VoteChoice",
    # Components
    "Ownership",
    "ProposalStore",
    "StakeLedger",
    "StakeRecord",
    "Delegation",
    "DelegationRegistry",
    "MembershipPolicy",
    "VoteReceipt",
    "VotingEngine",
    "ExecutionResult",
    "ExecutionStatus",
    "TimelockGovernor",
    # Facade
    "GovernanceDao",
    # Observability
    "AuditTrail",
    "EventType",
    "GovernanceEvent",
    "GovernanceEvents",
    "GovernanceMetrics",
]
