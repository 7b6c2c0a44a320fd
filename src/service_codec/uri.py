"""URI template expansion and merging of expanded templates onto a base URL."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import urljoin, urlsplit, urlunsplit

from uritemplate import expand


def expand_template(template: str, variables: Mapping[str, Any]) -> str:
    """Expand an RFC 6570 template. Undefined variables expand to nothing."""
    return expand(template, dict(variables))


def combine_uris(base_url: str | None, expanded: str) -> str:
    """Place an expanded template on top of the base URL.

    A template with its own scheme wins outright. Otherwise the base URL
    supplies scheme and (unless the template names one) authority, the
    template path is resolved against the base path, and the two query
    strings are merged with the base query first.
    """
    target = urlsplit(expanded)
    if target.scheme or not base_url:
        return expanded

    base = urlsplit(base_url)
    if target.path:
        path = urljoin(base.path or "/", target.path)
    else:
        path = base.path
    query = "&".join(q for q in (base.query, target.query) if q)
    return urlunsplit(
        (
            base.scheme,
            target.netloc or base.netloc,
            path,
            query,
            target.fragment or base.fragment,
        )
    )
