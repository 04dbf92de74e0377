"""
CLI command modules.
"""

from registry_cli.commands import devices, crypto, serve

__all__ = ["devices", "crypto", "serve"]
