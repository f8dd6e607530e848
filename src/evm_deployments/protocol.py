"""Private-token protocol deployment plan."""

from .sequencer import AddressRef, DependencyNode, DeploymentPlan, LiteralArg
from .types import ArtifactReference

# The underlying token's decimals() value, passed to PrivateToken
TOKEN_DECIMALS = 18

# Named targets, each deploying one contract and its dependency closure.
# "full" deploys every contract of the protocol.
PROTOCOL_TARGETS = {
    "private-token": "PrivateToken",
    "fundraiser": "Fundraiser",
    "auction": "Auction",
}


def _contract(name: str, *args) -> DependencyNode:
    return DependencyNode(name, ArtifactReference(name), tuple(args))


def _verifier(circuit: str) -> DependencyNode:
    # Every circuit compiles to a contract named UltraVerifier in its own file
    return DependencyNode(
        circuit,
        ArtifactReference("UltraVerifier", f"contracts/{circuit}/plonk_vk.sol"),
    )


def _ref(name: str) -> AddressRef:
    return AddressRef(name)


def protocol_plan() -> DeploymentPlan:
    """Full rollout: token, proof verifiers, then the contracts composing them."""
    nodes = (
        _contract("FunToken"),
        _verifier("process_pending_deposits"),
        _verifier("process_pending_transfers"),
        _verifier("transfer"),
        _verifier("withdraw"),
        _verifier("lock"),
        _verifier("add_eth_signer"),
        _contract("AccountController", _ref("add_eth_signer")),
        _contract("TransferVerify", _ref("transfer")),
        _contract("WithdrawVerify", _ref("withdraw")),
        _contract(
            "PrivateToken",
            _ref("process_pending_deposits"),
            _ref("process_pending_transfers"),
            _ref("TransferVerify"),
            _ref("WithdrawVerify"),
            _ref("lock"),
            _ref("FunToken"),
            LiteralArg(TOKEN_DECIMALS),
            _ref("AccountController"),
        ),
        # Fundraiser
        _verifier("correct_addition"),
        _verifier("met_threshold"),
        _verifier("correct_zero"),
        _verifier("revoke_contribution"),
        _contract(
            "Fundraiser",
            _ref("PrivateToken"),
            _ref("transfer"),
            _ref("correct_addition"),
            _ref("met_threshold"),
            _ref("correct_zero"),
            _ref("AccountController"),
            _ref("revoke_contribution"),
        ),
        # Auction
        _verifier("consolidate_bids"),
        _verifier("private_bid_greater"),
        _verifier("check_owner"),
        _contract(
            "Auction",
            _ref("PrivateToken"),
            _ref("transfer"),
            _ref("AccountController"),
            _ref("consolidate_bids"),
            _ref("private_bid_greater"),
            _ref("check_owner"),
        ),
    )
    return DeploymentPlan(name="full", nodes=nodes)


def plan_for(target: str = "full") -> DeploymentPlan:
    """
    Plan for a named target or a single contract.

    Args:
        target: "full", a key of PROTOCOL_TARGETS, or a logical contract name

    Returns:
        DeploymentPlan

    Raises:
        KeyError: If the target is unknown
    """
    plan = protocol_plan()
    if target == "full":
        return plan
    if target in PROTOCOL_TARGETS:
        sub_plan = plan.for_target(PROTOCOL_TARGETS[target])
        return DeploymentPlan(name=target, nodes=sub_plan.nodes)
    return plan.for_target(target)
