"""Assignment audit trail.

Every change to a subject's instrument assignments, and every refused
attempt, is recorded as a hash-chained entry. Entries hold hashed
identifiers only, never raw subject ids or answer content.
"""
import hashlib
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

GENESIS_HASH = "genesis"


class AuditAction(Enum):
    """Actions recorded by the access service."""
    ASSIGNMENT_GRANTED = "assignment.grant"
    ASSIGNMENT_REVOKED = "assignment.revoke"
    ASSIGNMENT_DENIED = "assignment.denied"


@dataclass(frozen=True)
class AuditEntry:
    """Immutable audit entry, chained to its predecessor by hash."""
    entry_id: str
    timestamp: datetime
    action: AuditAction
    subject_id_hash: str
    actor_id_hash: str
    actor_role: str
    details: Dict[str, Any] = field(default_factory=dict)
    previous_hash: str = ""
    entry_hash: str = ""

    def compute_hash(self) -> str:
        """SHA-256 over every field except entry_hash itself."""
        content = {
            "entry_id": self.entry_id,
            "timestamp": self.timestamp.isoformat(),
            "action": self.action.value,
            "subject_id_hash": self.subject_id_hash,
            "actor_id_hash": self.actor_id_hash,
            "actor_role": self.actor_role,
            "details": self.details,
            "previous_hash": self.previous_hash,
        }
        content_str = json.dumps(content, sort_keys=True)
        return hashlib.sha256(content_str.encode()).hexdigest()


class AuditLogger:
    """In-memory, append-only audit log.

    A deployment forwards entries to durable storage; the chain lets a
    reviewer detect edited or dropped entries.
    """

    def __init__(self):
        self._entries: List[AuditEntry] = []
        self._last_hash: str = GENESIS_HASH

        logger.info("AUDIT_LOGGER_INITIALIZED")

    @property
    def entries(self) -> List[AuditEntry]:
        return list(self._entries)

    def log(
        self,
        action: AuditAction,
        subject_id_hash: str,
        actor_id_hash: str,
        actor_role: str,
        details: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
    ) -> AuditEntry:
        """Append an entry to the chain.

        Args:
            action: Action being audited
            subject_id_hash: Hashed subject identifier
            actor_id_hash: Hashed identifier of the caller
            actor_role: Role the caller acted under
            details: Non-PHI context (instrument ids, counts)
            timestamp: Entry time; defaults to now (UTC)

        Returns:
            The stored AuditEntry

        Logs:
            - AUDIT_ENTRY_CREATED: After the entry is stored
        """
        entry = AuditEntry(
            entry_id=f"audit_{uuid.uuid4().hex[:16]}",
            timestamp=timestamp or datetime.now(timezone.utc),
            action=action,
            subject_id_hash=subject_id_hash,
            actor_id_hash=actor_id_hash,
            actor_role=actor_role,
            details=details or {},
            previous_hash=self._last_hash,
        )
        entry_hash = entry.compute_hash()
        entry = AuditEntry(
            entry_id=entry.entry_id,
            timestamp=entry.timestamp,
            action=entry.action,
            subject_id_hash=entry.subject_id_hash,
            actor_id_hash=entry.actor_id_hash,
            actor_role=entry.actor_role,
            details=entry.details,
            previous_hash=entry.previous_hash,
            entry_hash=entry_hash,
        )

        self._entries.append(entry)
        self._last_hash = entry_hash

        logger.info(
            "AUDIT_ENTRY_CREATED",
            extra={
                "entry_id": entry.entry_id,
                "action": action.value,
                "subject_id_hash": subject_id_hash,
                "actor_role": actor_role,
                "entry_hash": entry_hash[:16],
            },
        )
        return entry

    def verify_chain(self) -> bool:
        """Check that no entry was altered, dropped or reordered."""
        expected_prev = GENESIS_HASH
        for entry in self._entries:
            if entry.previous_hash != expected_prev:
                logger.critical(
                    "AUDIT_CHAIN_VERIFICATION_FAILED",
                    extra={
                        "entry_id": entry.entry_id,
                        "expected_prev": expected_prev[:16],
                        "actual_prev": entry.previous_hash[:16],
                    },
                )
                return False

            computed = entry.compute_hash()
            if computed != entry.entry_hash:
                logger.critical(
                    "AUDIT_ENTRY_HASH_MISMATCH",
                    extra={
                        "entry_id": entry.entry_id,
                        "computed": computed[:16],
                        "stored": entry.entry_hash[:16],
                    },
                )
                return False

            expected_prev = entry.entry_hash

        return True

    def query(
        self,
        subject_id_hash: Optional[str] = None,
        action: Optional[AuditAction] = None,
    ) -> List[AuditEntry]:
        """Entries filtered by subject and/or action, oldest first."""
        results = self._entries
        if subject_id_hash:
            results = [e for e in results if e.subject_id_hash == subject_id_hash]
        if action:
            results = [e for e in results if e.action == action]
        return list(results)
