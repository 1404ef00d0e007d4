"""
beranode CLI entry point.

Bootstrap the configuration and genesis files of a local Berachain network.

Usage::

    python -m beranode init --moniker local --validators 2 --full-nodes 1
    python -m beranode keys --config-dir ./beranodes --chain-spec devnet
    python -m beranode genesis-eth --output ./beranodes/tmp/eth-genesis.json --prague1-time 0
    python -m beranode genesis-beacon --config-dir ./beranodes --chain-spec devnet
    python -m beranode validate ./beranodes/beranodes.config.json
    python -m beranode validate --unprovisioned ./beranodes/beranodes.config.json
    python -m beranode release --repo berachain/beacon-kit --version-tag v1.3.0

Commands:
    validate        Check every field of a configuration file
    init            Write a fresh beranodes.config.json
    keys            Generate the keys of every node
    genesis-eth     Assemble the execution-layer genesis
    genesis-beacon  Bind the validator deposits into both genesis files
    release         Print the download URL of a client release for this platform

genesis-eth accepts every genesis flag, including the indexed
--pragueN-* and --eth-genesis-customN-contract-* families.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from beranode import config
from beranode.deposits import DepositCoordinator, KeyProvisioner
from beranode.exceptions import BeranodeError, LoadError, ValidationError
from beranode.genesis import (
    GenesisAssembler,
    GenesisParams,
    add_genesis_arguments,
    merge_overrides,
    namespace_overrides,
    parse_indexed_flags,
    read_params_file,
)
from beranode.nodes import DEFAULT_WALLET_BALANCE, build_base_config
from beranode.release import (
    BEACOND_REPO,
    detect_platform_arch,
    fetch_release,
    select_asset_url,
)
from beranode.store import write_json_atomic
from beranode.tooling import CastClient
from beranode.validation import validate_config, validate_document

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    # ANSI color codes
    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        timestamp = self.formatTime(record, self.datefmt)
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"
        return f"{self.CYAN}{timestamp}{self.RESET} {levelname} {name}: {record.getMessage()}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> None:
    """
    Configure logging with optional colors.

    --verbose forces debug output. Otherwise the level comes from
    BERANODE_LOG_LEVEL.
    """
    level = logging.DEBUG if verbose else _LOG_LEVELS[config.BERANODE_LOG_LEVEL]

    handler = logging.StreamHandler()
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def cmd_validate(args: argparse.Namespace) -> int:
    report = validate_config(args.config, provisioned=not args.unprovisioned)
    for issue in report.issues:
        print(issue.message)
    return 0 if report.passed else 1


def cmd_init(args: argparse.Namespace) -> int:
    """Write the base configuration, generating an operator wallet if needed."""
    beranode_dir = Path(args.beranode_dir)
    config_file = beranode_dir / config.CONFIG_FILE_NAME
    if config_file.exists() and not args.force:
        raise LoadError(config_file, "already exists, pass --force to overwrite")

    wallet_address = args.wallet_address
    wallet_private_key = args.wallet_private_key
    if bool(wallet_address) != bool(wallet_private_key):
        raise LoadError(
            config_file, "--wallet-address and --wallet-private-key must be given together"
        )
    if not wallet_address:
        cast = CastClient()
        cast.check_version()
        wallet_private_key = cast.new_private_key()
        wallet_address = cast.address(wallet_private_key)
        logger.info(f"Generated operator wallet {wallet_address}")

    document = build_base_config(
        moniker=args.moniker,
        network=args.network,
        beranode_dir=beranode_dir,
        validators=args.validators,
        full_nodes=args.full_nodes,
        pruned_nodes=args.pruned_nodes,
        wallet_address=wallet_address,
        wallet_private_key=wallet_private_key,
        wallet_balance=args.wallet_balance,
        mode=args.mode,
    )
    validate_document(document, config_file, provisioned=False).raise_for_issues()

    for directory in (config.BIN_DIR, config.TMP_DIR, config.LOG_DIR, config.NODES_DIR):
        (beranode_dir / directory).mkdir(parents=True, exist_ok=True)
    write_json_atomic(config_file, document)
    logger.info(f"Wrote {len(document['nodes'])} node(s) to {config_file}")
    return 0


def cmd_keys(args: argparse.Namespace) -> int:
    KeyProvisioner(args.config_dir, args.chain_spec, chain_id=args.chain_id).run()
    return 0


def cmd_genesis_eth(args: argparse.Namespace, extras: Sequence[str]) -> int:
    """Merge file parameters with flag overrides and write the genesis."""
    base = read_params_file(args.params_file) if args.params_file else {}
    overrides = namespace_overrides(args)
    overrides.update(parse_indexed_flags(extras))
    params = GenesisParams.build(merge_overrides(base, overrides))
    GenesisAssembler(params).write(args.output)
    return 0


def cmd_genesis_beacon(args: argparse.Namespace) -> int:
    coordinator = DepositCoordinator(args.config_dir, args.chain_spec, chain_id=args.chain_id)
    state = coordinator.run()
    logger.info(f"Deposit pipeline finished in state {state.value}")
    return 0


def cmd_release(args: argparse.Namespace) -> int:
    manifest = fetch_release(args.repo, args.version_tag)
    print(select_asset_url(manifest, detect_platform_arch()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """The top-level parser with one subparser per command."""
    default_dir = config.BERANODES_PATH
    parser = argparse.ArgumentParser(
        prog="beranode",
        description="Local Berachain network bootstrapper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--no-color", action="store_true", help="Disable colored logging output"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    validate = commands.add_parser("validate", help="Validate a configuration file")
    validate.add_argument(
        "config",
        nargs="?",
        type=Path,
        default=default_dir / config.CONFIG_FILE_NAME,
        help="Configuration file (default: $BERANODES_PATH/beranodes.config.json)",
    )
    validate.add_argument(
        "--unprovisioned",
        action="store_true",
        help="Accept nodes whose keys have not been generated yet",
    )

    init = commands.add_parser("init", help="Write a fresh configuration")
    init.add_argument("--beranode-dir", type=Path, default=default_dir)
    init.add_argument("--moniker", required=True)
    init.add_argument("--network", default="devnet")
    init.add_argument("--mode", default="local")
    init.add_argument("--validators", type=int, default=1)
    init.add_argument("--full-nodes", type=int, default=0)
    init.add_argument("--pruned-nodes", type=int, default=0)
    init.add_argument("--wallet-address", default="")
    init.add_argument("--wallet-private-key", default="")
    init.add_argument("--wallet-balance", default=DEFAULT_WALLET_BALANCE)
    init.add_argument("--force", action="store_true", help="Overwrite an existing config")

    for name, help_text in (
        ("keys", "Generate the keys of every node"),
        ("genesis-beacon", "Bind validator deposits into both genesis files"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("--config-dir", type=Path, default=default_dir)
        sub.add_argument("--chain-spec", default="devnet")
        sub.add_argument("--chain-id", type=int, default=None)

    genesis_eth = commands.add_parser(
        "genesis-eth",
        help="Assemble the execution-layer genesis",
        description="Indexed --pragueN-* and --eth-genesis-customN-contract-* flags "
        "are accepted in addition to the ones listed.",
    )
    genesis_eth.add_argument("--params-file", type=Path, default=None, help="YAML parameters")
    genesis_eth.add_argument(
        "--output",
        type=Path,
        default=default_dir / config.TMP_DIR / config.GENESIS_ETH_NAME,
    )
    add_genesis_arguments(genesis_eth)

    release = commands.add_parser("release", help="Print the asset URL of a client release")
    release.add_argument("--repo", default=BEACOND_REPO)
    release.add_argument("--version-tag", default="latest")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args, extras = parser.parse_known_args(argv)
    if extras and args.command != "genesis-eth":
        parser.error(f"unrecognized arguments: {' '.join(extras)}")

    setup_logging(args.verbose, args.no_color)

    try:
        if args.command == "genesis-eth":
            # Indexed flag families are left over as extras.
            return cmd_genesis_eth(args, extras)
        handlers = {
            "validate": cmd_validate,
            "init": cmd_init,
            "keys": cmd_keys,
            "genesis-beacon": cmd_genesis_beacon,
            "release": cmd_release,
        }
        return handlers[args.command](args)
    except ValidationError as e:
        for issue in e.issues:
            logger.error(issue.message)
        logger.error(e.message)
        return 1
    except BeranodeError as e:
        logger.error(e.message)
        return 1


if __name__ == "__main__":
    sys.exit(main())
