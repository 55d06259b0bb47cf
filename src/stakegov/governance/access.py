"""
Administrator capability.

Owner-gated operations receive the same ``Ownership`` instance at
construction and check the caller on every privileged call.
"""

import logging

logger = logging.getLogger(__name__)
from ..errors.exceptions import NotOwner, ValidationError


class Ownership:
    """Single-owner capability."""

    def __init__(self, owner: str):
        if not owner:
            raise ValidationError("Owner address is required", field="owner")
        self._owner = owner

    @property
    def owner(self) -> str:
        return self._owner

    def is_owner(self, caller: str) -> bool:
        return caller == self._owner

    def require_owner(self, caller: str, operation: str = "") -> None:
        """Raise ``NotOwner`` unless ``caller`` is the owner."""
        if not self.is_owner(caller):
            logger.debug(f"Rejected {operation or 'privileged call'} from {caller}")
            raise NotOwner(
                f"{caller} is not allowed to {operation or 'perform this operation'}",
                caller=caller,
            )

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self.require_owner(caller, "transfer ownership")
        if not new_owner:
            raise ValidationError("New owner address is required", field="new_owner")

        logger.info(f"Ownership transferred from {self._owner} to {new_owner}")
        self._owner = new_owner
