"""
Module 10 - CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m registry_cli register <pubkey> [--device-id LABEL] [--metadata 0x..] [--json]
    python -m registry_cli devices [--json]
    python -m registry_cli root [--json]
    python -m registry_cli proof <pubkey> [--out proof.json] [--json]
    python -m registry_cli nullifier --secret 0x.. --epoch N [--json]
    python -m registry_cli commitment --cid CID --key 0x.. --round N [--json]
    python -m registry_cli verify-proof --proof proof.json [--root 0x..] [--json]
    python -m registry_cli serve [--host HOST] [--port PORT]

Environment Variables:
    EDGEREG_DEVICE_STORE        Device store: memory, jsonl, sqlite (default: memory)
    EDGEREG_DEVICE_STORE_PATH   Device store file
    EDGEREG_NULLIFIER_STORE     Spent-nullifier store: memory, sqlite
    EDGEREG_VALIDITY_EPOCHS     Validity window in days (default: 365)
    EDGEREG_LOG_LEVEL           Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.config.runtime import STORE_BACKENDS, RuntimeConfig, load_runtime_config
from registry_cli.commands import devices, crypto, serve
from registry_cli.commands.common import EXIT_RUNTIME_ERROR


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the CLI. Logs go to stderr; results to stdout."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="edgereg",
        description="EdgeChain device registry CLI - register devices, issue proofs, derive nullifiers.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./edgereg.json or ~/.config/edgereg/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--store",
        type=str,
        default=None,
        choices=list(STORE_BACKENDS),
        help="Device store backend (overrides config)",
    )
    parser.add_argument(
        "--store-path",
        type=str,
        default=None,
        help="Device store file (overrides config)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks on unexpected errors",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- register command ---
    register_parser = subparsers.add_parser(
        "register",
        help="Register a device",
        description="Add a device to the registry and print the new root.",
    )
    register_parser.add_argument("pubkey", type=str, help="Public identifier of the device")
    register_parser.add_argument("--device-id", type=str, default=None, help="Operator-facing label")
    register_parser.add_argument("--metadata", type=str, default=None, help="Opaque metadata as 0x-hex")
    register_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    register_parser.set_defaults(func=devices.register_cmd)

    # --- devices command ---
    devices_parser = subparsers.add_parser(
        "devices",
        help="List registered devices",
    )
    devices_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    devices_parser.set_defaults(func=devices.devices_cmd)

    # --- root command ---
    root_parser = subparsers.add_parser(
        "root",
        help="Show the published Merkle root",
    )
    root_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    root_parser.set_defaults(func=devices.root_cmd)

    # --- proof command ---
    proof_parser = subparsers.add_parser(
        "proof",
        help="Issue a membership proof for a device",
    )
    proof_parser.add_argument("pubkey", type=str, help="Public identifier of the device")
    proof_parser.add_argument("--out", "-o", type=str, default=None, help="Save the proof as JSON")
    proof_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    proof_parser.set_defaults(func=devices.proof_cmd)

    # --- nullifier command ---
    nullifier_parser = subparsers.add_parser(
        "nullifier",
        help="Derive a per-epoch nullifier from a device secret",
    )
    nullifier_parser.add_argument("--secret", type=str, default=None, help="Device secret as 0x-hex")
    nullifier_parser.add_argument("--epoch", type=int, default=None, help="Epoch id")
    nullifier_parser.add_argument(
        "--generate-secret",
        action="store_true",
        default=False,
        help="Print a fresh random device secret instead",
    )
    nullifier_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    nullifier_parser.set_defaults(func=crypto.nullifier_cmd)

    # --- commitment command ---
    commitment_parser = subparsers.add_parser(
        "commitment",
        help="Compute a contribution commitment",
    )
    commitment_parser.add_argument("--cid", type=str, required=True, help="Content pointer (e.g. IPFS CID)")
    commitment_parser.add_argument("--key", type=str, required=True, help="32-byte key material as 0x-hex")
    commitment_parser.add_argument("--round", type=int, required=True, help="Round id")
    commitment_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    commitment_parser.set_defaults(func=crypto.commitment_cmd)

    # --- verify-proof command ---
    verify_parser = subparsers.add_parser(
        "verify-proof",
        help="Check a membership proof offline",
        description="Fold a proof to a root. Exit code 2 if it does not match.",
    )
    verify_parser.add_argument("--proof", type=str, default=None, help="Proof JSON from 'edgereg proof --out'")
    verify_parser.add_argument("--leaf", type=str, default=None, help="Leaf hash as 0x-hex")
    verify_parser.add_argument("--pubkey", type=str, default=None, help="Compute the leaf from this identifier")
    verify_parser.add_argument("--index", type=int, default=None, help="Leaf index")
    verify_parser.add_argument(
        "--sibling",
        type=str,
        action="append",
        default=None,
        help="Sibling hash, bottom-up (repeatable)",
    )
    verify_parser.add_argument("--root", type=str, default=None, help="Expected root as 0x-hex")
    verify_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    verify_parser.set_defaults(func=crypto.verify_proof_cmd)

    # --- serve command ---
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP API",
    )
    serve_parser.add_argument("--host", type=str, default=None, help="Bind address (default: from config)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: from config)")
    serve_parser.set_defaults(func=serve.serve_cmd)

    return parser


def apply_overrides(config: RuntimeConfig, args: argparse.Namespace) -> RuntimeConfig:
    """Apply global command-line overrides to the loaded config."""
    if args.store is not None or args.store_path is not None:
        config.registry = dataclasses.replace(
            config.registry,
            store=args.store or config.registry.store,
            store_path=args.store_path or config.registry.store_path,
        )
    if args.log_level:
        config.log_level = args.log_level
    return config


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = apply_overrides(load_runtime_config(args.config), args)
    except (OSError, ValueError, TypeError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    setup_logging(level=config.log_level)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
