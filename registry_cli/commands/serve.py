"""
Module 10 - CLI Serve Command

Run the HTTP API under uvicorn.

Usage:
    edgereg serve [--host HOST] [--port PORT]
"""

from __future__ import annotations

import logging
from argparse import Namespace

from registry_cli.commands.common import EXIT_SUCCESS, runtime_config


logger = logging.getLogger(__name__)


def serve_cmd(args: Namespace) -> int:
    import uvicorn
    from api.app import create_app
    from gateway.service import build_service

    config = runtime_config(args)
    host = args.host or config.api.host
    port = args.port or config.api.port

    app = create_app(build_service(config))
    logger.info(f"Serving registry API on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=config.log_level.lower())
    return EXIT_SUCCESS
