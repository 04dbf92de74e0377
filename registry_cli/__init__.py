"""
Module 10 - Registry CLI

Command-line interface for the device registry.

Usage:
    python -m registry_cli register <pubkey> [--device-id LABEL]
    python -m registry_cli proof <pubkey> --out proof.json
    python -m registry_cli verify-proof --proof proof.json
    python -m registry_cli nullifier --secret 0x... --epoch 7
    python -m registry_cli serve
"""

__version__ = "0.1.0"
