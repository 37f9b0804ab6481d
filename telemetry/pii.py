from __future__ import annotations

import hashlib
import re
from typing import Any, Dict

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# Phone-like numbers: optional country code, then 3-3-4 digit groups.
PHONE_RE = re.compile(r"(?<![\d-])(?:\+\d{1,3}[\s.-]?)?(?:\(\d{3}\)|\d{3})[\s.-]?\d{3}[\s.-]?\d{4}(?![\d-])")

# Tenant financial details never leave the process in logs.
SENSITIVE_FIELDS = {
    "income",
    "credit_score",
    "creditscore",
    "user_context",
    "usercontext",
    "raw_response",
    "raw_text",
    "prompt",
}

MAX_LOGGED_TEXT = 400


def _digest(text: str) -> str:
    return "[HASH:" + hashlib.sha256(text.encode("utf-8")).hexdigest()[:12] + "]"


def scrub_text(text: str) -> str:
    """Hash email addresses and phone numbers embedded in free text."""
    if not text:
        return text
    scrubbed = EMAIL_RE.sub(lambda m: "[EMAIL_" + _digest(m.group(0)) + "]", text)
    return PHONE_RE.sub(lambda m: "[PHONE_" + _digest(m.group(0)) + "]", scrubbed)


def _is_sensitive_key(key: str) -> bool:
    return key.lower().replace("-", "_") in SENSITIVE_FIELDS


def scrub_value(value: Any) -> Any:
    if isinstance(value, str):
        cleaned = scrub_text(value)
        return _digest(cleaned) if len(cleaned) > MAX_LOGGED_TEXT else cleaned
    if isinstance(value, dict):
        return sanitize_log_payload(value)
    if isinstance(value, (list, tuple)):
        return [scrub_value(item) for item in value]
    return value


def sanitize_log_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Redact sensitive keys and scrub PII from a log payload."""
    if not isinstance(payload, dict):
        return {}
    cleaned: Dict[str, Any] = {}
    for key, value in payload.items():
        if value is not None and _is_sensitive_key(str(key)):
            cleaned[key] = "[REDACTED]"
            continue
        cleaned[key] = scrub_value(value)
    return cleaned
