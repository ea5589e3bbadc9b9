"""Default backend error server for the cluster ingress."""

from .pages import ERROR_MESSAGES, ErrorPageRenderer, parse_error_code

__all__ = ["ERROR_MESSAGES", "ErrorPageRenderer", "parse_error_code"]
