"""Exception hierarchy for stakegov.

Every failure of a governance, token or sale operation is reported as a typed
exception derived from ``StakeGovError``. Errors are raised before any state is
mutated, so a caught exception always means the operation had no effect.
"""

import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""

    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    GOVERNANCE = "governance"
    ACCESS = "access"
    TOKEN = "token"
    SALE = "sale"
    SYSTEM = "system"


@dataclass
class ErrorContext:
    """Context information for an error."""

    timestamp: float = field(default_factory=time.time)
    component: Optional[str] = None
    operation: Optional[str] = None
    caller: Optional[str] = None
    proposal_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "timestamp": self.timestamp,
            "component": self.component,
            "operation": self.operation,
            "caller": self.caller,
            "proposal_id": self.proposal_id,
            "metadata": self.metadata,
        }


class StakeGovError(Exception):
    """Base exception for all stakegov errors."""

    default_code: str = "STAKEGOV_ERROR"
    default_category: ErrorCategory = ErrorCategory.SYSTEM

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: Optional[ErrorCategory] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.severity = severity
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause
        self.metadata = metadata or {}
        self.timestamp = time.time()
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.severity != ErrorSeverity.MEDIUM:
            parts.append(f"Severity: {self.severity.value}")

        return " | ".join(parts)


class ValidationError(StakeGovError):
    """Validation error."""

    default_code = "VALIDATION_ERROR"
    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.expected = expected

    def to_dict(self) -> Dict[str, Any]:
        """Convert validation error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "field": self.field,
                "value": str(self.value) if self.value is not None else None,
                "expected": str(self.expected) if self.expected is not None else None,
            }
        )
        return data


class ConfigurationError(StakeGovError):
    """Configuration error."""

    default_code = "CONFIGURATION_ERROR"
    default_category = ErrorCategory.CONFIGURATION

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.config_value = config_value

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "config_key": self.config_key,
                "config_value": str(self.config_value)
                if self.config_value is not None
                else None,
            }
        )
        return data


class GovernanceError(StakeGovError):
    """A governance operation was rejected."""

    default_code = "GOVERNANCE_ERROR"
    default_category = ErrorCategory.GOVERNANCE

    def __init__(
        self,
        message: str,
        proposal_id: Optional[int] = None,
        member: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.proposal_id = proposal_id
        self.member = member

    def to_dict(self) -> Dict[str, Any]:
        """Convert governance error to dictionary."""
        data = super().to_dict()
        data.update({"proposal_id": self.proposal_id, "member": self.member})
        return data


class AccessError(StakeGovError):
    """Caller lacks the capability required by the operation."""

    default_code = "ACCESS_ERROR"
    default_category = ErrorCategory.ACCESS

    def __init__(self, message: str, caller: Optional[str] = None, **kwargs):
        super().__init__(message, severity=ErrorSeverity.HIGH, **kwargs)
        self.caller = caller


class TokenError(StakeGovError):
    """The token ledger rejected a transfer."""

    default_code = "TOKEN_ERROR"
    default_category = ErrorCategory.TOKEN

    def __init__(
        self,
        message: str,
        account: Optional[str] = None,
        requested: Optional[int] = None,
        available: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.account = account
        self.requested = requested
        self.available = available

    def to_dict(self) -> Dict[str, Any]:
        """Convert token error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "account": self.account,
                "requested": self.requested,
                "available": self.available,
            }
        )
        return data


class SaleError(StakeGovError):
    """The token sale rejected a purchase or an admin action."""

    default_code = "SALE_ERROR"
    default_category = ErrorCategory.SALE


# Governance


class EmptyDescription(ValidationError):
    default_code = "DESCRIPTION_CANNOT_BE_EMPTY"


class ProposalNotFound(GovernanceError):
    default_code = "PROPOSAL_NOT_FOUND"


class NotAMember(GovernanceError):
    default_code = "NOT_A_MEMBER"


class NoAvailableTokens(GovernanceError):
    default_code = "NO_AVAILABLE_TOKENS"


class VotingClosed(GovernanceError):
    default_code = "VOTING_CLOSED"


class AlreadyVoted(GovernanceError):
    default_code = "ALREADY_VOTED"


class UserHasDelegatedTheVote(GovernanceError):
    default_code = "USER_HAS_DELEGATED_THE_VOTE"


class NotADelegate(GovernanceError):
    default_code = "NOT_A_DELEGATE"


class SelfDelegation(GovernanceError):
    default_code = "SELF_DELEGATION"


class ProposalAlreadyExecuted(GovernanceError):
    default_code = "PROPOSAL_ALREADY_EXECUTED"


class ProposalDidNotPass(GovernanceError):
    default_code = "PROPOSAL_DID_NOT_PASS"


class VotingStillInProgress(GovernanceError):
    default_code = "VOTING_STILL_IN_PROGRESS"


# Access


class NotOwner(AccessError):
    default_code = "NOT_OWNER"


# Token ledger


class InsufficientBalance(TokenError):
    default_code = "INSUFFICIENT_BALANCE"


class InsufficientAllowance(TokenError):
    default_code = "INSUFFICIENT_ALLOWANCE"


class NotEnoughTokens(TokenError):
    default_code = "NOT_ENOUGH_TOKENS"


# Token sale


class SaleClosed(SaleError):
    default_code = "SALE_CLOSED"


class SendEtherToPurchaseTokens(SaleError):
    default_code = "SEND_ETHER_TO_PURCHASE_TOKENS"


class NotEnoughTokensInTheContract(SaleError):
    default_code = "NOT_ENOUGH_TOKENS_IN_THE_CONTRACT"


def create_validation_error(
    field: str, value: Any, expected: Any, message: Optional[str] = None
) -> ValidationError:
    """Create a validation error."""
    if message is None:
        message = f"Invalid value for field '{field}': expected {expected}, got {value}"

    return ValidationError(message=message, field=field, value=value, expected=expected)
