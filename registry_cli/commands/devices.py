"""
Module 10 - CLI Registry Commands

Register devices, list them, and fetch the published root or a proof.

Usage:
    edgereg register <pubkey> [--device-id LABEL] [--metadata 0x..] [--json]
    edgereg devices [--json]
    edgereg root [--json]
    edgereg proof <pubkey> [--out proof.json] [--json]
"""

from __future__ import annotations

import json
from argparse import Namespace
from pathlib import Path
from typing import Any

from core.crypto.hashing import from_hex, to_hex
from core.merkle.merkle_tree import MerkleProof
from core.schemas.device import DeviceIdentity
from core.schemas.errors import RegistryException
from registry_cli.commands.common import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    open_service,
    print_error,
    print_json,
)


def identity_to_dict(identity: DeviceIdentity, approved: bool) -> dict[str, Any]:
    data = identity.model_dump(mode="json")
    data["approved"] = approved
    return data


def proof_to_dict(device_pubkey: str, proof: MerkleProof) -> dict[str, Any]:
    """Proof in the same shape the HTTP API returns it."""
    return {
        "device_pubkey": device_pubkey,
        "leaf_hash": to_hex(proof.leaf),
        "leaf_index": proof.index,
        "siblings": [to_hex(s) for s in proof.siblings],
        "root": to_hex(proof.root),
    }


def register_cmd(args: Namespace) -> int:
    """Register one device in the configured store."""
    metadata = None
    if args.metadata:
        try:
            metadata = from_hex(args.metadata)
        except ValueError as e:
            print_error(f"--metadata: {e}")
            return EXIT_RUNTIME_ERROR

    try:
        service = open_service(args)
        identity = service.registry.register(
            args.pubkey,
            metadata,
            device_id=args.device_id,
        )
    except RegistryException as e:
        print_error(f"{e.code}: {e.message}")
        return EXIT_RUNTIME_ERROR

    root = to_hex(service.registry.get_root())
    if args.json:
        data = identity_to_dict(identity, service.registry.is_approved(identity.device_pubkey))
        data["root"] = root
        print_json(data)
    else:
        print(f"registered: {identity.device_pubkey}")
        if identity.device_id:
            print(f"device_id: {identity.device_id}")
        print(f"expiry_epoch: {identity.expiry_epoch}")
        print(f"root: {root}")
    return EXIT_SUCCESS


def devices_cmd(args: Namespace) -> int:
    """List registered devices in leaf order."""
    try:
        service = open_service(args)
    except RegistryException as e:
        print_error(f"{e.code}: {e.message}")
        return EXIT_RUNTIME_ERROR

    registry = service.registry
    devices = registry.list_all()

    if args.json:
        print_json([identity_to_dict(d, registry.is_approved(d.device_pubkey)) for d in devices])
        return EXIT_SUCCESS

    if not devices:
        print("No devices registered")
        return EXIT_SUCCESS

    for d in devices:
        marker = "" if registry.is_approved(d.device_pubkey) else " [expired]"
        label = f" ({d.device_id})" if d.device_id else ""
        print(f"  - {d.device_pubkey}{label} expires={d.expiry_epoch}{marker}")
    print(f"\ntotal: {len(devices)}")
    return EXIT_SUCCESS


def root_cmd(args: Namespace) -> int:
    """Print the published root."""
    try:
        service = open_service(args)
    except RegistryException as e:
        print_error(f"{e.code}: {e.message}")
        return EXIT_RUNTIME_ERROR

    status = service.registry.status()
    if args.json:
        print_json(status.model_dump())
    else:
        print(f"root: {status.root}")
        print(f"total_devices: {status.total_devices}")
    return EXIT_SUCCESS


def proof_cmd(args: Namespace) -> int:
    """Print (or save) a membership proof for one device."""
    try:
        service = open_service(args)
        proof = service.registry.get_proof(args.pubkey)
    except RegistryException as e:
        print_error(f"{e.code}: {e.message}")
        return EXIT_RUNTIME_ERROR

    data = proof_to_dict(args.pubkey, proof)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(data, indent=2, sort_keys=True))

    if args.json:
        print_json(data)
    else:
        print(f"device: {args.pubkey}")
        print(f"leaf_index: {proof.index}")
        print(f"siblings: {len(proof.siblings)}")
        print(f"root: {data['root']}")
        if args.out:
            print(f"saved: {args.out}")
    return EXIT_SUCCESS
