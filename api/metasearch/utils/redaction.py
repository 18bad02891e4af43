"""Redaction helpers for logs and diagnostics."""

from __future__ import annotations

import re

_URL_USERINFO_RE = re.compile(r"([a-z][a-z0-9+.-]*://)([^@/]+)@", re.IGNORECASE)
_QUERY_SECRET_RE = re.compile(
    r"(?i)\b(token|secret|password|api_key|apikey|access_token|name|term|q)=([^&\s']+)"
)
_SSN_RE = re.compile(r"\b\d{3}-\d{2}-\d{4}\b")


def redact_secrets(text: str) -> str:
    """Redact credentials, search terms and SSN-shaped values from a log string."""
    if not text:
        return text
    redacted = _URL_USERINFO_RE.sub(r"\1***@", text)
    redacted = _QUERY_SECRET_RE.sub(r"\1=***", redacted)
    redacted = _SSN_RE.sub("***-**-****", redacted)
    return redacted
