"""
CLI module for invtx - contains command-line interface components.
"""

from invtx.cli.main import main

__all__ = ["main"]
