"""
Error page rendering for the default backend.

The HTML assets ship inside the package; the error template uses
``$err_code`` and ``$err_msg`` placeholders, which are HTML-escaped on
substitution.
"""

import html
import re
from importlib import resources
from string import Template
from typing import Optional

# Status codes with a dedicated error page. Anything else gets the index page.
ERROR_MESSAGES = {
    400: "Bad Request",
    401: "Unauthorized Access",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
    503: "Service Unavailable",
    504: "Gateway Time-out",
}

UNPARSABLE_CODE_MESSAGE = "unable to get error code"

_CODE_RE = re.compile(r"[+-]?[0-9]+")


def load_asset(name: str) -> bytes:
    """Read one of the bundled HTML assets."""
    return resources.files("error_server").joinpath("assets").joinpath(name).read_bytes()


def parse_error_code(header: Optional[str]) -> int:
    """
    Parse the X-Code header value.

    An absent or empty header yields 0, which has no error page.

    Raises:
        ValueError: If the header is present but not an integer
    """
    if not header:
        return 0
    if not _CODE_RE.fullmatch(header):
        raise ValueError(f"invalid X-Code header: {header!r}")
    return int(header)


def message_for(code: int) -> Optional[str]:
    return ERROR_MESSAGES.get(code)


class ErrorPageRenderer:
    """Holds the page assets and fills the error template."""

    def __init__(self, error_template: bytes, index_page: bytes):
        self.error_template = error_template
        self.index_page = index_page

    @classmethod
    def from_package(cls) -> "ErrorPageRenderer":
        return cls(load_asset("error.html"), load_asset("index.html"))

    def render_error(self, code: int, message: str) -> str:
        """
        Render the error template.

        Raises:
            ValueError: If the template is not valid UTF-8 or has a malformed
                placeholder
            KeyError: If the template references an unknown placeholder
        """
        template = Template(self.error_template.decode("utf-8"))
        return template.substitute(
            err_code=html.escape(str(code)),
            err_msg=html.escape(message),
        )
