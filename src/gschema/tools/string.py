import hashlib
import re

_QUERY_WHITESPACE_RE = re.compile(r"[ \t\n\r]+")


def normalize_query(query: str) -> str:
    """Collapse every run of spaces, tabs, CR and LF into one space. Nothing is trimmed."""
    return _QUERY_WHITESPACE_RE.sub(" ", query)


def query_hash(query: str) -> str:
    """SHA-256 hex digest of the normalized query text, the persisted operation identifier."""
    return hashlib.sha256(normalize_query(query).encode("utf-8")).hexdigest()
