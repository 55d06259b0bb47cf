"""
Governance system demonstration.

This script walks through the whole governance flow: deployment, buying
tokens, proposals, direct and delegated votes, the timelock, execution,
finalization and the audit trail.
"""

import logging

logger = logging.getLogger(__name__)
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stakegov.deployment import DAO_ADDRESS, SALE_ADDRESS, deploy
from stakegov.governance import GovernanceConfig, ManualClock, SECONDS_PER_DAY
from stakegov.token.sale import WEI_PER_ETHER
from stakegov.errors import ProposalDidNotPass, StakeGovError, VotingStillInProgress

OWNER = "0xowner"
TOKEN = 10 ** 18


def print_section(title: str):
    """Print a section header."""
    logger.info(f"\n{'='*60}")
    logger.info(f"🎯 {title}")
    logger.info('='*60)


def print_subsection(title: str):
    """Print a subsection header."""
    logger.info(f"\n📋 {title}")
    logger.info('-'*40)


def demo_deployment(clock):
    """Deploy the token, DAO and sale and open the sale."""
    print_section("Deployment")

    config = GovernanceConfig(voting_duration=SECONDS_PER_DAY, timelock_duration=SECONDS_PER_DAY)
    deployment = deploy(1_000_000, OWNER, config=config, clock=clock)
    deployment.token.fund(OWNER, SALE_ADDRESS, 500_000 * TOKEN)

    logger.info("✅ Governance deployed with:")
    logger.info(f"   - Total supply: {deployment.token.total_supply // TOKEN} GTK")
    logger.info(f"   - Voting duration: {deployment.dao.get_voting_duration()}s")
    logger.info(f"   - Timelock duration: {deployment.dao.get_timelock_duration()}s")
    logger.info(f"   - Token price: {deployment.sale.get_token_price()} wei")

    return deployment


def demo_token_sale(deployment):
    """Members buy their way into governance."""
    print_section("Token Sale")

    purchases = {
        "0xalice": WEI_PER_ETHER,
        "0xbob": 2 * WEI_PER_ETHER,
        "0xcarol": 6 * WEI_PER_ETHER // 10,
        "0xdave": WEI_PER_ETHER // 2,
    }
    for buyer, wei in purchases.items():
        tokens = deployment.sale.buy_tokens(buyer, wei)
        # Allow the DAO to stake whatever the buyer holds.
        deployment.token.approve(buyer, DAO_ADDRESS, tokens)
        logger.info(f"   ✅ {buyer} bought {tokens // TOKEN} GTK")

    logger.info(f"   💰 Wei raised: {deployment.sale.get_wei_raised()}")


def demo_proposal_lifecycle(deployment, clock):
    """Create, vote on and execute a proposal."""
    print_section("Proposal Lifecycle")
    dao = deployment.dao

    proposal_id = dao.create_proposal("0xalice", "Fund a community solar array")
    logger.info(f"✅ Proposal {proposal_id} created, state {dao.get_proposal_state(proposal_id).value}")

    print_subsection("Voting")
    for voter, support in (("0xalice", True), ("0xbob", True), ("0xcarol", False)):
        receipt = dao.vote_on_proposal(voter, proposal_id, support)
        logger.info(f"   🗳️  {voter} voted {receipt.choice.value} with {receipt.weight // TOKEN} GTK")

    for_votes, against_votes = dao.get_proposal_tally(proposal_id)
    logger.info(f"   📊 For: {for_votes // TOKEN}, against: {against_votes // TOKEN}")
    logger.info(f"   📊 In favour: {dao.get_proposal_vote_for_percentage(proposal_id)}%")

    print_subsection("Timelock")
    try:
        dao.execute_proposal(OWNER, proposal_id)
    except VotingStillInProgress as e:
        logger.info(f"   ⏳ Too early: {e.message}")

    clock.advance(2 * SECONDS_PER_DAY + 1)
    logger.info(f"   ⏰ Two days later the proposal is {dao.get_proposal_state(proposal_id).value}")

    result = dao.execute_proposal(OWNER, proposal_id)
    logger.info(f"   ✅ Executed, returned {result.total_released() // TOKEN} GTK of stake")

    return proposal_id


def demo_delegation(deployment, clock):
    """Delegate votes and let the delegate vote for everyone."""
    print_section("Delegation")
    dao = deployment.dao

    for member in ("0xalice", "0xbob", "0xcarol", "0xdave"):
        deployment.token.approve(member, DAO_ADDRESS, deployment.token.balance_of(member))

    proposal_id = dao.create_proposal("0xbob", "Replace street lights with LEDs")
    dao.delegate_vote("0xalice", "0xdave")
    dao.delegate_vote("0xbob", "0xdave")
    logger.info(f"   🔗 0xalice and 0xbob delegated to {dao.get_delegate('0xalice')}")

    receipt = dao.vote_as_a_delegate("0xdave", proposal_id, False)
    logger.info(f"   🗳️  0xdave voted {receipt.choice.value} with {receipt.weight // TOKEN} GTK")
    dao.vote_on_proposal("0xcarol", proposal_id, True)

    clock.advance(2 * SECONDS_PER_DAY + 1)
    try:
        dao.execute_proposal(OWNER, proposal_id)
    except ProposalDidNotPass as e:
        logger.info(f"   ❌ {e.message}")

    result = dao.finalize_proposal(proposal_id)
    logger.info(f"   ✅ Finalized, returned {result.total_released() // TOKEN} GTK of stake")

    for member in ("0xalice", "0xbob"):
        dao.revoke_delegation(member)


def demo_observability(deployment):
    """Show the audit trail and metrics."""
    print_section("Observability")

    summary = deployment.events.get_audit_trail().get_audit_summary()
    logger.info(f"   📜 Events recorded: {summary['total_events']}")
    for event_type, count in sorted(summary["event_counts"].items()):
        logger.info(f"      - {event_type}: {count}")
    logger.info(f"   🔒 Integrity verified: {summary['integrity_verified']}")

    metrics = deployment.events.get_metrics()
    logger.info(f"   📊 Outstanding stake: {metrics.outstanding_stake()}")


def main():
    """Main demonstration function."""
    logger.info("🎯 stakegov Governance Demonstration")
    logger.info("=" * 60)

    try:
        clock = ManualClock()
        deployment = demo_deployment(clock)
        demo_token_sale(deployment)
        demo_proposal_lifecycle(deployment, clock)
        demo_delegation(deployment, clock)
        demo_observability(deployment)

        print_section("Demonstration Complete")
        logger.info("✅ All governance features demonstrated successfully!")

    except StakeGovError as e:
        logger.error(f"\n❌ Demonstration failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    exit_code = main()
    sys.exit(exit_code)
