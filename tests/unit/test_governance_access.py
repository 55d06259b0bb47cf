"""
Unit tests for the ownership capability.
"""

import logging

logger = logging.getLogger(__name__)
import pytest

from stakegov.deployment import deploy
from stakegov.governance.access import Ownership
from stakegov.governance.core import ManualClock
from stakegov.errors.exceptions import NotOwner, ValidationError


class TestOwnership:
    """Test Ownership class."""

    def test_owner(self):
        ownership = Ownership("0xowner")

        assert ownership.owner == "0xowner"
        assert ownership.is_owner("0xowner") is True
        assert ownership.is_owner("0xalice") is False

    def test_owner_required(self):
        with pytest.raises(ValidationError):
            Ownership("")

    def test_require_owner(self):
        ownership = Ownership("0xowner")
        ownership.require_owner("0xowner", "do things")

        with pytest.raises(NotOwner) as exc_info:
            ownership.require_owner("0xalice", "do things")

        assert exc_info.value.caller == "0xalice"

    def test_transfer_ownership(self):
        ownership = Ownership("0xowner")

        ownership.transfer_ownership("0xowner", "0xalice")

        assert ownership.owner == "0xalice"
        with pytest.raises(NotOwner):
            ownership.transfer_ownership("0xowner", "0xbob")

    def test_transfer_is_shared_across_components(self):
        """Test that a new owner controls both the DAO and the sale."""
        deployment = deploy(1_000, "0xowner", clock=ManualClock(1_700_000_000))

        deployment.ownership.transfer_ownership("0xowner", "0xalice")

        deployment.dao.set_timelock_duration("0xalice", 2)
        deployment.sale.close_sale("0xalice")
        with pytest.raises(NotOwner):
            deployment.dao.set_timelock_duration("0xowner", 1)
