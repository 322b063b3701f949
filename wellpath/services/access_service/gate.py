"""Assignment gate - who may see and assign which instruments.

Policy only. Visibility: clinicians see the full catalog; subjects see
their assigned instruments, or the full catalog while nothing is assigned.
Mutation: only clinicians may change a subject's assignment set.
"""
import logging
from typing import FrozenSet, Iterable, List, Optional, Union

from wellpath.shared.models import InstrumentSummary, Role
from wellpath.shared.utils import ACTOR_ID_KIND, hash_pii
from wellpath.services.assessment_service.catalog import InstrumentCatalog
from wellpath.services.assessment_service.errors import (
    AssignmentPermissionError,
    InstrumentNotFoundError,
)
from .audit_logger import AuditAction, AuditLogger

logger = logging.getLogger(__name__)


def parse_role(role: Union[Role, str]) -> Role:
    """Accept a Role or its string value.

    Raises:
        ValueError: If the string names no known role
    """
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        raise ValueError(f"Unknown role: {role!r}") from None


class AssignmentGate:
    """Visibility and assignment policy over the instrument catalog.

    Holds no assignment state itself: the caller passes the subject's
    current assignment set and persists the returned one.
    """

    def __init__(
        self,
        catalog: InstrumentCatalog,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """Initialize gate with dependencies.

        Args:
            catalog: Loaded instrument catalog
            audit_logger: Audit trail (injected for testing)
        """
        self.catalog = catalog
        self.audit_logger = audit_logger or AuditLogger()

    def list_visible_instruments(
        self,
        role: Union[Role, str],
        assigned_ids: Iterable[str] = (),
    ) -> List[InstrumentSummary]:
        """Instruments visible to a caller. See InstrumentCatalog.list_visible."""
        role = parse_role(role)
        assigned = frozenset(assigned_ids)
        visible = self.catalog.list_visible(role, assigned)

        logger.info(
            "INSTRUMENTS_LISTED",
            extra={
                "role": role.value,
                "assigned_count": len(assigned),
                "visible_count": len(visible),
            },
        )
        return visible

    def update_assignments(
        self,
        actor_role: Union[Role, str],
        actor_id: str,
        subject_id: str,
        current_ids: Iterable[str],
        add: Iterable[str] = (),
        remove: Iterable[str] = (),
    ) -> FrozenSet[str]:
        """Apply additions and removals to a subject's assignment set.

        Args:
            actor_role: Role of the caller making the change
            actor_id: Identifier of the caller
            subject_id: Subject whose assignments change
            current_ids: The subject's assignment set before the change
            add: Instrument ids to assign
            remove: Instrument ids to unassign

        Returns:
            The new assignment set

        Raises:
            AssignmentPermissionError: Caller is not a clinician
            InstrumentNotFoundError: An added id is not in the catalog

        Logs:
            - ASSIGNMENT_DENIED: Non-clinician attempt (also audited)
            - ASSIGNMENTS_UPDATED: After a successful change
        """
        role = parse_role(actor_role)
        subject_id_hash = hash_pii(subject_id)
        actor_id_hash = hash_pii(actor_id, kind=ACTOR_ID_KIND)
        to_add = frozenset(add)
        to_remove = frozenset(remove)

        if role != Role.CLINICIAN:
            logger.warning(
                "ASSIGNMENT_DENIED",
                extra={
                    "actor_role": role.value,
                    "subject_id_hash": subject_id_hash,
                },
            )
            self.audit_logger.log(
                action=AuditAction.ASSIGNMENT_DENIED,
                subject_id_hash=subject_id_hash,
                actor_id_hash=actor_id_hash,
                actor_role=role.value,
                details={
                    "requested_add": sorted(to_add),
                    "requested_remove": sorted(to_remove),
                },
            )
            raise AssignmentPermissionError(
                f"Role '{role.value}' may not change instrument assignments"
            )

        for instrument_id in sorted(to_add):
            if instrument_id not in self.catalog:
                raise InstrumentNotFoundError(instrument_id)

        current = frozenset(current_ids)
        granted = to_add - current
        revoked = (to_remove - to_add) & current
        updated = (current | granted) - revoked

        if granted:
            self.audit_logger.log(
                action=AuditAction.ASSIGNMENT_GRANTED,
                subject_id_hash=subject_id_hash,
                actor_id_hash=actor_id_hash,
                actor_role=role.value,
                details={"instrument_ids": sorted(granted)},
            )
        if revoked:
            self.audit_logger.log(
                action=AuditAction.ASSIGNMENT_REVOKED,
                subject_id_hash=subject_id_hash,
                actor_id_hash=actor_id_hash,
                actor_role=role.value,
                details={"instrument_ids": sorted(revoked)},
            )

        logger.info(
            "ASSIGNMENTS_UPDATED",
            extra={
                "subject_id_hash": subject_id_hash,
                "granted_count": len(granted),
                "revoked_count": len(revoked),
                "assigned_count": len(updated),
            },
        )
        return updated
