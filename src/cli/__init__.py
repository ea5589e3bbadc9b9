"""
CLI entrypoint for the Tectonic stats verifier
"""

from .main import build_settings, create_parser, format_output, main

__version__ = "1.0.0"

__all__ = [
    "main",
    "create_parser",
    "build_settings",
    "format_output",
]
