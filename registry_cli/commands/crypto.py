"""
Module 10 - CLI Device-Side Commands

Stateless helpers a device (or an operator testing one) runs locally:
derive nullifiers, compute commitments, and check a proof offline.

Usage:
    edgereg nullifier --secret 0x.. --epoch 7
    edgereg nullifier --generate-secret
    edgereg commitment --cid <CID> --key 0x.. --round 7
    edgereg verify-proof --proof proof.json [--root 0x..]
"""

from __future__ import annotations

import json
from argparse import Namespace
from pathlib import Path

from core.crypto.hashing import from_hex, hash_leaf, to_hex
from core.merkle.merkle_proofs import MerkleVerifier
from core.nullifiers.scheme import (
    compute_commitment,
    derive_nullifier,
    generate_device_secret,
)
from registry_cli.commands.common import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
    print_error,
    print_json,
)


def nullifier_cmd(args: Namespace) -> int:
    """Derive the nullifier for (secret, epoch), or print a fresh secret."""
    if args.generate_secret:
        secret = to_hex(generate_device_secret())
        if args.json:
            print_json({"device_secret": secret})
        else:
            print(secret)
        return EXIT_SUCCESS

    if args.secret is None or args.epoch is None:
        print_error("--secret and --epoch are required (or use --generate-secret)")
        return EXIT_RUNTIME_ERROR

    try:
        nullifier = derive_nullifier(from_hex(args.secret), args.epoch)
    except ValueError as e:
        print_error(str(e))
        return EXIT_RUNTIME_ERROR

    if args.json:
        print_json({"epoch_id": args.epoch, "nullifier": to_hex(nullifier)})
    else:
        print(to_hex(nullifier))
    return EXIT_SUCCESS


def commitment_cmd(args: Namespace) -> int:
    """Compute the commitment for a contribution."""
    try:
        commitment = compute_commitment(args.cid, from_hex(args.key), args.round)
    except ValueError as e:
        print_error(str(e))
        return EXIT_RUNTIME_ERROR

    if args.json:
        print_json({
            "content_pointer": args.cid,
            "round_id": args.round,
            "commitment": to_hex(commitment),
        })
    else:
        print(to_hex(commitment))
    return EXIT_SUCCESS


def _load_proof(args: Namespace) -> tuple[bytes, list[bytes], int, bytes]:
    """
    Gather (leaf, siblings, index, root) from --proof and explicit flags.

    Explicit flags override values from the proof file.

    Raises:
        ValueError: Missing fields or malformed hex
    """
    data: dict = {}
    if args.proof:
        data = json.loads(Path(args.proof).read_text())

    if args.leaf:
        leaf = from_hex(args.leaf)
    elif args.pubkey:
        leaf = hash_leaf(args.pubkey)
    elif "leaf_hash" in data:
        leaf = from_hex(data["leaf_hash"])
    else:
        raise ValueError("no leaf given (use --proof, --leaf or --pubkey)")

    if args.sibling:
        siblings = [from_hex(s) for s in args.sibling]
    else:
        siblings = [from_hex(s) for s in data.get("siblings", [])]

    index = args.index if args.index is not None else data.get("leaf_index")
    if index is None:
        raise ValueError("no leaf index given (use --proof or --index)")

    root_hex = args.root or data.get("root")
    if root_hex is None:
        raise ValueError("no root given (use --proof or --root)")

    return leaf, siblings, int(index), from_hex(root_hex)


def verify_proof_cmd(args: Namespace) -> int:
    """
    Check a membership proof against a root without contacting the registry.

    Exit code 2 when the proof does not verify.
    """
    try:
        leaf, siblings, index, root = _load_proof(args)
    except (OSError, ValueError) as e:
        print_error(str(e))
        return EXIT_RUNTIME_ERROR

    ok = MerkleVerifier.verify_leaf_in_root(leaf, index, siblings, root)

    if args.json:
        print_json({"ok": ok, "leaf_hash": to_hex(leaf), "leaf_index": index, "root": to_hex(root)})
    else:
        print(f"proof_ok: {str(ok).lower()}")
        print(f"root: {to_hex(root)}")

    return EXIT_SUCCESS if ok else EXIT_VERIFICATION_FAILED
