"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file suffixes to the Content-Type sent with static file routes.

The table is small and fixed:

    ┌──────────────────┬──────────────────────────┐
    │  Suffix          │  Content-Type            │
    ├──────────────────┼──────────────────────────┤
    │  .html  .htm     │  text/html               │
    │  .css            │  text/css                │
    │  .js             │  application/javascript  │
    │  .json           │  application/json        │
    │  .png            │  image/png               │
    │  .jpg   .jpeg    │  image/jpeg              │
    │  .gif            │  image/gif               │
    │  (anything else) │  text/plain              │
    └──────────────────┴──────────────────────────┘

Matching is a plain suffix comparison on the file path as given, so
"INDEX.HTML" falls through to text/plain.

=============================================================================
"""

from pathlib import Path
from typing import Optional, Union


# Checked in order; first matching suffix wins.
MIME_TYPES = (
    (".html", "text/html"),
    (".htm", "text/html"),
    (".css", "text/css"),
    (".js", "application/javascript"),
    (".json", "application/json"),
    (".png", "image/png"),
    (".jpg", "image/jpeg"),
    (".jpeg", "image/jpeg"),
    (".gif", "image/gif"),
)

DEFAULT_MIME_TYPE = "text/plain"


def get_content_type(path: Union[str, Path], default: Optional[str] = None) -> str:
    """
    Get the Content-Type for a file based on its suffix.

    Args:
        path: File path or name
        default: Type to use when no suffix matches (text/plain if omitted)

    Returns:
        The Content-Type string

    Examples:
        >>> get_content_type("public/index.html")
        'text/html'
        >>> get_content_type("data.json")
        'application/json'
        >>> get_content_type("README")
        'text/plain'
    """
    name = str(path)
    for suffix, content_type in MIME_TYPES:
        if name.endswith(suffix):
            return content_type
    return default or DEFAULT_MIME_TYPE
