"""Log guard utilities.

Never-log policy:
- Provider API keys
- Auth tokens and passwords
- Rendered prompts
- Message content

Allowed (with suffix):
- _chars, _length: length of text
- _sha256, _hash: hash of text
"""

import hashlib

import structlog

FORBIDDEN_KEYS = frozenset(
    {
        "prompt",
        "content",
        "message",
        "api_key",
        "bearer",
        "token",
        "secret",
        "password",
        "raw_body",
    }
)

REDACTED_SUFFIXES = ("_sha256", "_hash", "_length", "_chars")


def hash_text(value: str) -> str:
    """SHA-256 hex digest of a string, for log correlation without content."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _has_redacted_suffix(key: str) -> bool:
    return any(key.endswith(suffix) for suffix in REDACTED_SUFFIXES)


def safe_kv(*, _env: str = "local", **kwargs) -> dict:
    """Validate that no forbidden keys are present unless already redacted.

    Raises ValueError in local/test if a forbidden key is used without a
    redacted suffix. Elsewhere, logs a warning and drops the offending keys.

    Usage:
        logger.info("llm.request.started", **safe_kv(
            model_name="meta-llama/llama-3.2-3b-instruct:free",
            message_chars=1234,       # OK: _chars suffix
            # content="hello world",  # BLOCKED: forbidden key
        ))

    Args:
        _env: Deployment environment (Settings.relay_env); violations raise
            only in local and test.
        **kwargs: Keyword arguments to validate and return.

    Returns:
        The validated kwargs.

    Raises:
        ValueError: In local/test, if a forbidden key is used without redacted suffix.
    """
    violations = [
        key for key in kwargs if key in FORBIDDEN_KEYS and not _has_redacted_suffix(key)
    ]

    if violations:
        msg = f"Forbidden log keys without redacted suffix: {violations}"
        if _env in ("local", "test"):
            raise ValueError(msg)

        structlog.get_logger("relay.services.redact").warning(
            "safe_kv_violation", forbidden_keys=violations
        )
        return {k: v for k, v in kwargs.items() if k not in violations}

    return kwargs
