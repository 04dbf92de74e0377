"""
Module execution entry point.

Allows running with: python -m registry_cli
"""

import sys
from registry_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
