"""Subject identifier hashing for logs and audit entries.

Subject and clinician identifiers are protected health information and must
be hashed before they reach application logs or the audit trail.
"""
import hashlib
import logging
from typing import Optional

logger = logging.getLogger(__name__)

MIN_SALT_LENGTH = 32

# Hash domains: one raw id hashes differently per kind
SUBJECT_ID_KIND = "subject"
ACTOR_ID_KIND = "actor"
ID_KINDS = frozenset({SUBJECT_ID_KIND, ACTOR_ID_KIND})

# Loaded from the PII_HASH_SALT environment variable at process start
_PII_SALT: Optional[str] = None


def configure_pii_salt(salt: str) -> None:
    """Configure the salt used by hash_pii().

    Must be called during application startup before any identifier is
    hashed.

    Args:
        salt: Secret salt value

    Raises:
        ValueError: If salt is empty or shorter than MIN_SALT_LENGTH
    """
    global _PII_SALT
    if not salt or len(salt) < MIN_SALT_LENGTH:
        logger.critical(
            "PII_SALT_CONFIGURATION_FAILED",
            extra={"reason": "Salt too short or empty", "min_length": MIN_SALT_LENGTH}
        )
        raise ValueError(f"PII salt must be at least {MIN_SALT_LENGTH} characters")

    _PII_SALT = salt
    logger.info("PII_SALT_CONFIGURED", extra={"salt_length": len(salt)})


def hash_pii(value: str, kind: str = SUBJECT_ID_KIND) -> str:
    """Hash an identifier for safe logging and audit storage.

    Salted SHA-256, so the same subject always maps to the same hash
    without the raw identifier being recoverable.

    Args:
        value: Identifier to hash
        kind: SUBJECT_ID_KIND for subjects, ACTOR_ID_KIND for clinicians
            and other callers acting on a subject

    Returns:
        64-character hex digest

    Raises:
        ValueError: If kind is not one of ID_KINDS
        RuntimeError: If the salt has not been configured
    """
    if kind not in ID_KINDS:
        raise ValueError(f"Unknown identifier kind: {kind!r}")
    if _PII_SALT is None:
        logger.critical(
            "PII_HASH_FAILED",
            extra={"reason": "Salt not configured", "action": "call configure_pii_salt()"}
        )
        raise RuntimeError("PII salt not configured. Call configure_pii_salt() first.")

    salted = f"{_PII_SALT}:{kind}:{value}"
    return hashlib.sha256(salted.encode()).hexdigest()
