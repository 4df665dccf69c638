"""
Link canonicalization.

Strips fragments, tracking query parameters and trailing slashes so the
same article reached through different campaign links gets one identity.
"""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# Query parameters dropped in addition to any ``utm_*`` parameter
TRACKING_PARAMS = frozenset({"utm", "ref", "fbclid", "gclid", "mc_cid", "mc_eid"})


def is_tracking_param(name: str) -> bool:
    """Return True if a query parameter name is a known tracking parameter."""
    key = name.lower()
    return key.startswith("utm_") or key in TRACKING_PARAMS


def _canonicalize(link: str | None) -> str:
    """Apply one canonicalization pass to a URL."""
    raw = (link or "").strip()

    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw

    if not parts.scheme or not parts.netloc:
        return raw

    query = parts.query
    if query:
        params = parse_qsl(query, keep_blank_values=True)
        kept = [(k, v) for k, v in params if not is_tracking_param(k)]
        # Untouched queries keep their original encoding
        if len(kept) != len(params):
            query = urlencode(kept)

    result = urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), parts.path, query, "")
    )
    return result.rstrip("/")


def normalize_link(link: str | None) -> str:
    """
    Canonicalize an entry URL into a stable identity.

    Stripping a trailing slash can leave whitespace or an empty query
    behind, so passes are repeated until the value stops changing.

    Parameters
    ----------
    link : str | None
        Raw URL, possibly malformed or empty.

    Returns
    -------
    str
        The canonical URL, or the trimmed input if it is not an absolute URL.
    """
    result = _canonicalize(link)
    while True:
        again = _canonicalize(result)
        if again == result:
            return result
        result = again
