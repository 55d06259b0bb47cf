"""
One-call setup of a governance token, its DAO and its token sale.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass
from typing import Optional

from .governance.access import Ownership
from .governance.core import Clock, GovernanceConfig
from .governance.dao import GovernanceDao
from .governance.observability import GovernanceEvents
from .token.ledger import GovernanceToken
from .token.sale import DEFAULT_TOKEN_PRICE, TokenSale

DAO_ADDRESS = "dao:governance"
SALE_ADDRESS = "dao:sale"


@dataclass
class GovernanceDeployment:
    """Everything created by :func:`deploy`."""

    token: GovernanceToken
    ownership: Ownership
    dao: GovernanceDao
    sale: TokenSale
    events: GovernanceEvents


def deploy(
    initial_supply: int,
    owner: str,
    config: Optional[GovernanceConfig] = None,
    clock: Optional[Clock] = None,
    token_price: int = DEFAULT_TOKEN_PRICE,
) -> GovernanceDeployment:
    """Create a governance token, a DAO and an unfunded token sale sharing one owner.

    The sale starts empty; the owner stocks it with ``token.fund``.
    """
    events = GovernanceEvents()
    ownership = Ownership(owner)
    token = GovernanceToken(initial_supply, owner)
    dao = GovernanceDao(
        token, ownership, config=config, clock=clock, address=DAO_ADDRESS, events=events
    )
    sale = TokenSale(
        token, ownership, address=SALE_ADDRESS, token_price=token_price, events=events
    )

    logger.info(
        f"Deployed governance for {owner}: supply {token.total_supply}, "
        f"voting {dao.get_voting_duration()}s, timelock {dao.get_timelock_duration()}s"
    )
    return GovernanceDeployment(
        token=token, ownership=ownership, dao=dao, sale=sale, events=events
    )
