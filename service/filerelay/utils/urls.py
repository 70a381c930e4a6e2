"""
URL utilities for incoming chat text.

Decides whether a message is a fetchable URL and derives the filename
shown in Telegram for the uploaded resource.
"""

from typing import Optional
from urllib.parse import unquote, urlparse

DEFAULT_FILE_NAME = "file"


def is_valid_url(value: Optional[str]) -> bool:
    """
    Check that value is an absolute URL.

    Both a scheme and a host must be present:
    - "https://example.com/cat.png" -> True
    - "example.com/cat.png"         -> False (no scheme)
    - "mailto:someone"              -> False (no host)
    - "not a url"                   -> False
    """
    if not value or not isinstance(value, str):
        return False

    try:
        parsed = urlparse(value.strip())
        # .hostname validates the netloc (raises on a malformed port)
        hostname = parsed.hostname
        parsed.port
    except ValueError:
        return False

    return bool(parsed.scheme) and bool(hostname)


def display_name_from_url(url: str) -> str:
    """
    Return the last path segment of url, or DEFAULT_FILE_NAME.

    Query string and fragment are not part of the name.
    "https://example.com/files/"          -> "file"
    "https://example.com/a/report%20.pdf" -> "report .pdf"
    "https://example.com/a%2F..%2Fcat.png"  -> "cat.png"
    """
    path = unquote(urlparse(url.strip()).path)
    # Split after decoding so an encoded slash never ends up in the name
    name = path.rsplit("/", 1)[-1]
    return name or DEFAULT_FILE_NAME


def file_extension(file_name: str) -> str:
    """Lowercased extension without the dot ("" when there is none)."""
    _, dot, ext = file_name.rpartition(".")
    if not dot:
        return ""
    return ext.lower()
