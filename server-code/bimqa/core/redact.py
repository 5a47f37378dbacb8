from __future__ import annotations
import re

API_KEY_RE = re.compile(r"(key=)([^&\s]+)", re.I)
LONG_TOKEN_RE = re.compile(r"([A-Za-z0-9_\-]{32,})")


def redact(s: str) -> str:
    """Mask API keys and long opaque tokens before logging external errors."""
    out = API_KEY_RE.sub(r"\1***REDACTED***", s)
    return LONG_TOKEN_RE.sub("***", out)
