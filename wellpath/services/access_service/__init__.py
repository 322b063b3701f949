"""Access Service: instrument visibility and assignment policy.

Subjects only see what a clinician assigned to them (or everything, while
nothing is assigned). Only clinicians may change assignments, and every
change or refused attempt lands in the hash-chained audit trail.
"""

from .audit_logger import AuditAction, AuditEntry, AuditLogger
from .gate import AssignmentGate, parse_role

__all__ = [
    "AuditAction",
    "AuditEntry",
    "AuditLogger",
    "AssignmentGate",
    "parse_role",
]
