"""
Unit tests for the governance token sale.
"""

import logging

logger = logging.getLogger(__name__)
import pytest

from stakegov.deployment import SALE_ADDRESS, deploy
from stakegov.governance.observability import EventType
from stakegov.token.sale import WEI_PER_ETHER
from stakegov.errors.exceptions import (
    NotEnoughTokensInTheContract,
    NotOwner,
    SaleClosed,
    SendEtherToPurchaseTokens,
    ValidationError,
)

OWNER = "0xowner"
TOKEN = 10 ** 18


@pytest.fixture
def deployment():
    deployment = deploy(1_000_000, OWNER)
    deployment.token.fund(OWNER, SALE_ADDRESS, 500_000 * TOKEN)
    return deployment


class TestTokenSale:
    """Test TokenSale class."""

    def test_buy_tokens(self, deployment):
        """Test that one ether buys one hundred tokens."""
        tokens = deployment.sale.buy_tokens("0xalice", WEI_PER_ETHER)

        assert tokens == 100 * TOKEN
        assert deployment.token.balance_of("0xalice") == 100 * TOKEN
        assert deployment.token.balance_of(SALE_ADDRESS) == 499_900 * TOKEN
        assert deployment.sale.get_wei_raised() == WEI_PER_ETHER

    def test_multiple_buyers(self, deployment):
        sale = deployment.sale

        sale.buy_tokens("0xalice", WEI_PER_ETHER)
        sale.buy_tokens("0xbob", 2 * WEI_PER_ETHER)
        sale.buy_tokens("0xcarol", WEI_PER_ETHER // 2)

        assert deployment.token.balance_of("0xalice") == 100 * TOKEN
        assert deployment.token.balance_of("0xbob") == 200 * TOKEN
        assert deployment.token.balance_of("0xcarol") == 50 * TOKEN

    def test_zero_payment(self, deployment):
        with pytest.raises(SendEtherToPurchaseTokens):
            deployment.sale.buy_tokens("0xalice", 0)

    def test_not_enough_tokens(self):
        """Test that an unfunded sale cannot deliver tokens."""
        deployment = deploy(1_000_000, OWNER)

        with pytest.raises(NotEnoughTokensInTheContract):
            deployment.sale.buy_tokens("0xalice", WEI_PER_ETHER)

        assert deployment.sale.get_wei_raised() == 0

    def test_set_token_price(self, deployment):
        deployment.sale.set_token_price(OWNER, WEI_PER_ETHER // 10)

        assert deployment.sale.get_token_price() == WEI_PER_ETHER // 10
        assert deployment.sale.buy_tokens("0xalice", WEI_PER_ETHER) == 10 * TOKEN

    def test_set_token_price_not_owner(self, deployment):
        with pytest.raises(NotOwner):
            deployment.sale.set_token_price("0xalice", 1)

    def test_set_invalid_price(self, deployment):
        with pytest.raises(ValidationError) as exc_info:
            deployment.sale.set_token_price(OWNER, 0)

        assert exc_info.value.field == "token_price"
        assert exc_info.value.expected == "a positive price in wei"

    def test_close_sale(self, deployment):
        """Test that no purchase is possible after closing."""
        deployment.sale.close_sale(OWNER)

        assert deployment.sale.get_sale_open() is False
        with pytest.raises(SaleClosed):
            deployment.sale.buy_tokens("0xalice", WEI_PER_ETHER)

    def test_close_sale_not_owner(self, deployment):
        with pytest.raises(NotOwner):
            deployment.sale.close_sale("0xalice")

        assert deployment.sale.get_sale_open() is True

    def test_purchase_emits_event(self, deployment):
        deployment.sale.buy_tokens("0xalice", WEI_PER_ETHER)

        events = deployment.events.get_audit_trail().get_events_of_type(EventType.TOKENS_PURCHASED)
        assert len(events) == 1
        assert events[0].amount == 100 * TOKEN

    def test_purchased_tokens_grant_membership(self, deployment):
        """Test that bought tokens can be used to create a proposal."""
        deployment.sale.buy_tokens("0xalice", WEI_PER_ETHER)

        proposal_id = deployment.dao.create_proposal("0xalice", "Fund the community garden")

        assert deployment.dao.get_specific_proposal(proposal_id).creator == "0xalice"
