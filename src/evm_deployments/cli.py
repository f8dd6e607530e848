"""Command-line interface for evm-deployments library."""

import argparse
import logging
import os
import signal
import sys
import threading
from typing import Any, List, Optional

from dotenv import load_dotenv

from .artifacts import HardhatArtifactProvider
from .config import DeploySettings, build_signer
from .driver import TransactionDriver
from .exceptions import DeploymentError, RunAborted, RunCancelled
from .ledger import DeploymentLedger
from .orchestrator import Orchestrator, RunReport
from .protocol import PROTOCOL_TARGETS, plan_for
from .rpc import JsonRpcClient
from .sequencer import DeploymentPlan, load_plan
from .verify import read_contract, verify_command

logger = logging.getLogger("evm_deployments")


def _non_negative(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected seconds, got '{value}'")
    if seconds < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return seconds


def _seconds(value: str) -> Any:
    if value.lower() == "none":
        return "none"
    return _non_negative(value)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="evm-deploy",
        description="Deploy contract graphs and keep a per-network deployment ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Targets: full, {', '.join(PROTOCOL_TARGETS)}, or any contract of the protocol plan.

Examples:
  evm-deploy deploy hardhat
  evm-deploy deploy sepolia --target private-token
  evm-deploy deploy sepolia --plan-file plans/wrapped.json --strict-fingerprint
  evm-deploy show sepolia
  evm-deploy verify sepolia PrivateToken
  evm-deploy call sepolia FunToken decimals
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--ledger-dir", help="Ledger directory (default: ./deployments)")
    parser.add_argument("--rpc-url", help="Override the network's RPC URL")

    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy = subparsers.add_parser("deploy", help="Deploy or reuse every contract of a plan")
    deploy.add_argument("network", help="Network name, e.g. hardhat or sepolia")
    source = deploy.add_mutually_exclusive_group()
    source.add_argument("--target", default="full", help="Protocol target or contract name")
    source.add_argument("--plan-file", help="JSON deployment plan")
    deploy.add_argument("--artifacts-dir", help="Hardhat artifacts (default: ./artifacts)")
    deploy.add_argument("--force", action="store_true", help="Redeploy even unchanged contracts")
    deploy.add_argument(
        "--strict-fingerprint",
        action="store_true",
        help="Also redeploy when constructor arguments changed",
    )
    deploy.add_argument(
        "--receipt-timeout", type=_seconds, help="Max seconds to wait for a receipt, or 'none'"
    )
    deploy.add_argument(
        "--settle-delay", type=_non_negative, help="Seconds to wait after each deployment"
    )

    show = subparsers.add_parser("show", help="List ledger entries for a network")
    show.add_argument("network")

    verify = subparsers.add_parser("verify", help="Print the hardhat verify command")
    verify.add_argument("network")
    verify.add_argument("name", help="Logical contract name")

    call = subparsers.add_parser("call", help="Read-only call on a deployed contract")
    call.add_argument("network")
    call.add_argument("name", help="Logical contract name")
    call.add_argument("function", help="View function, e.g. decimals")
    call.add_argument("args", nargs="*", help="Function arguments (integers are converted)")

    return parser


def _plan(args: argparse.Namespace) -> DeploymentPlan:
    if args.plan_file:
        return load_plan(args.plan_file)
    try:
        return plan_for(args.target)
    except KeyError:
        raise ValueError(f"Unknown target '{args.target}'") from None


def _print_report(report: RunReport) -> None:
    for name in report.committed:
        print(f"  {name:<28} {report.decisions[name]:<7} {report.records[name].address}")
    if report.failed_node:
        print(f"  {report.failed_node:<28} FAILED")


def _cancel_handler(cancel_event: threading.Event):
    """
    SIGINT handler that requests a stop between contracts.

    A broadcast transaction is always awaited and recorded, so repeated
    presses only repeat the notice.
    """

    def handler(signum, frame):
        if cancel_event.is_set():
            print("\nAlready stopping, waiting for the current contract", file=sys.stderr)
            return
        print("\nStopping after the current contract", file=sys.stderr)
        cancel_event.set()

    return handler


def _install_cancel_handler(cancel_event: threading.Event) -> None:
    if threading.current_thread() is not threading.main_thread():
        return
    signal.signal(signal.SIGINT, _cancel_handler(cancel_event))


def _ledger(args: argparse.Namespace) -> DeploymentLedger:
    return DeploymentLedger(args.ledger_dir or os.environ.get("DEPLOY_LEDGER_DIR") or None)


def run_deploy(args: argparse.Namespace) -> int:
    settings = DeploySettings.from_env(
        args.network,
        rpc_url=args.rpc_url,
        ledger_dir=args.ledger_dir,
        artifacts_dir=args.artifacts_dir,
        settle_delay=args.settle_delay,
    )
    if args.receipt_timeout is not None:
        settings.receipt_timeout = None if args.receipt_timeout == "none" else args.receipt_timeout
    if args.force:
        settings.force_redeploy = True
    if args.strict_fingerprint:
        settings.reuse_ignores_arg_changes = False

    plan = _plan(args)
    client = JsonRpcClient(settings.network.rpc_url)
    driver = TransactionDriver(
        client,
        build_signer(settings),
        settings.network,
        receipt_timeout=settings.receipt_timeout,
        settle_delay=settings.settle_delay,
    )
    cancel_event = threading.Event()
    orchestrator = Orchestrator(
        DeploymentLedger(settings.ledger_dir),
        HardhatArtifactProvider(settings.artifacts_dir),
        driver,
        settings.network,
        force_redeploy=settings.force_redeploy,
        reuse_ignores_arg_changes=settings.reuse_ignores_arg_changes,
        cancel_event=cancel_event,
    )
    _install_cancel_handler(cancel_event)

    try:
        report = orchestrator.run(plan)
    except (RunAborted, RunCancelled) as e:
        _print_report(e.report)
        logger.error("%s", e)
        logger.error("Re-run the same command to resume; committed contracts will be reused")
        return 1

    _print_report(report)
    print(f"Deployment succeeded on {report.network}: {report.transactions_sent} transaction(s) sent")
    return 0


def run_show(args: argparse.Namespace) -> int:
    ledger = _ledger(args)
    found = False
    for name in ledger.names():
        record = ledger.record(name, args.network)
        if record is None:
            continue
        found = True
        print(f"{name:<28} {record.address}  block {record.block_number}  tx {record.transaction_hash}")
    if not found:
        print(f"No deployments recorded for {args.network}")
    return 0


def run_verify(args: argparse.Namespace) -> int:
    ledger = _ledger(args)
    try:
        plan: Optional[DeploymentPlan] = plan_for("full")
        plan.node(args.name)
    except KeyError:
        plan = None
    print("Network ", args.network)
    print(verify_command(ledger, args.name, args.network, plan=plan))
    return 0


def _call_arg(value: str) -> Any:
    try:
        return int(value, 0)
    except ValueError:
        return value


def run_call(args: argparse.Namespace) -> int:
    settings = DeploySettings.from_env(args.network, rpc_url=args.rpc_url, ledger_dir=args.ledger_dir)
    client = JsonRpcClient(settings.network.rpc_url)
    result = read_contract(
        DeploymentLedger(settings.ledger_dir),
        client,
        args.name,
        args.network,
        args.function,
        *[_call_arg(a) for a in args.args],
    )
    print(result)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = create_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    commands = {
        "deploy": run_deploy,
        "show": run_show,
        "verify": run_verify,
        "call": run_call,
    }
    try:
        return commands[args.command](args)
    except DeploymentError as e:
        logger.error("%s", e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("Invalid input: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
