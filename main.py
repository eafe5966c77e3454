#!/usr/bin/env python3
"""typed-openapi - Entry point."""
import os
import sys

# Allow running from a source checkout without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from typed_openapi.cli.commands import cli

if __name__ == "__main__":
    cli()
