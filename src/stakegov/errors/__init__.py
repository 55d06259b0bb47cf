"""stakegov error handling.

Typed exception hierarchy shared by the governance engine and its token
collaborators.
"""

from .exceptions import (
    AccessError,
    AlreadyVoted,
    ConfigurationError,
    EmptyDescription,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    GovernanceError,
    InsufficientAllowance,
    InsufficientBalance,
    NoAvailableTokens,
    NotADelegate,
    NotAMember,
    NotEnoughTokens,
    NotEnoughTokensInTheContract,
    NotOwner,
    ProposalAlreadyExecuted,
    ProposalDidNotPass,
    ProposalNotFound,
    SaleClosed,
    SaleError,
    SelfDelegation,
    SendEtherToPurchaseTokens,
    StakeGovError,
    TokenError,
    UserHasDelegatedTheVote,
    ValidationError,
    VotingClosed,
    VotingStillInProgress,
    create_validation_error,
)

__all__ = [
    # Base
    "StakeGovError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "ValidationError",
    "ConfigurationError",
    "GovernanceError",
    "AccessError",
    "TokenError",
    "SaleError",
    # Governance
    "EmptyDescription",
    "ProposalNotFound",
    "NotAMember",
    "NoAvailableTokens",
    "VotingClosed",
    "AlreadyVoted",
    "UserHasDelegatedTheVote",
    "NotADelegate",
    "SelfDelegation",
    "ProposalAlreadyExecuted",
    "ProposalDidNotPass",
    "VotingStillInProgress",
    # Access
    "NotOwner",
    # Token
    "InsufficientBalance",
    "InsufficientAllowance",
    "NotEnoughTokens",
    # Sale
    "SaleClosed",
    "SendEtherToPurchaseTokens",
    "NotEnoughTokensInTheContract",
    # Factories
    "create_validation_error",
]
