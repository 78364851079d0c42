"""
storecache — Key Normalization

Caller keys are turned into store keys by percent-escaping the characters
that are awkward in store keys (colons, slashes, backslashes, whitespace,
control characters). ``%`` itself is escaped first, which keeps the mapping
injective: two different caller keys never produce the same store key.

The namespace separator ``:`` is escaped inside keys, so the only bare colon
in a store key is the one after the namespace. Adapters with different
namespaces (or none) can share one store without their keys overlapping.
"""

import re

_ESCAPE_RE = re.compile(r"[%:/\\\s\x00-\x1f\x7f]")


def _escape(match: re.Match[str]) -> str:
    return "".join(f"%{b:02X}" for b in match.group(0).encode("utf-8"))


class KeySanitizer:
    """
    Deterministic, collision-free key normalization.

    Args:
        namespace: Optional prefix; when set, store keys become ``"<namespace>:<key>"``
    """

    def __init__(self, namespace: str = ""):
        self.namespace = namespace

    def __call__(self, key: str) -> str:
        if not isinstance(key, str) or not key:
            raise ValueError("cache key must be a non-empty string")

        sanitized = _ESCAPE_RE.sub(_escape, key)
        if self.namespace:
            return f"{self.namespace}:{sanitized}"
        return sanitized

    def __repr__(self) -> str:
        return f"KeySanitizer(namespace={self.namespace!r})"
