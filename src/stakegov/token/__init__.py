"""
Governance token collaborators: the balance ledger and the token sale.
"""

from .ledger import GovernanceToken, InMemoryTokenLedger, TokenLedger
from .sale import DEFAULT_TOKEN_PRICE, WEI_PER_ETHER, TokenSale

__all__ = [
    "TokenLedger",
    "InMemoryTokenLedger",
    "GovernanceToken",
    "TokenSale",
    "DEFAULT_TOKEN_PRICE",
    "WEI_PER_ETHER",
]
