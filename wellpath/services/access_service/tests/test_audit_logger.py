"""Tests for the assignment audit trail."""
from datetime import datetime, timezone

import pytest

from wellpath.services.access_service.audit_logger import (
    GENESIS_HASH,
    AuditAction,
    AuditEntry,
    AuditLogger,
)


@pytest.fixture
def logger():
    return AuditLogger()


def _grant(logger, subject="subj_hash_1", details=None):
    return logger.log(
        action=AuditAction.ASSIGNMENT_GRANTED,
        subject_id_hash=subject,
        actor_id_hash="clin_hash",
        actor_role="clinician",
        details=details or {"instrument_ids": ["phq9"]},
    )


class TestAuditEntryCreation:
    def test_log_creates_entry(self, logger):
        entry = _grant(logger)

        assert entry.entry_id.startswith("audit_")
        assert entry.action == AuditAction.ASSIGNMENT_GRANTED
        assert entry.subject_id_hash == "subj_hash_1"
        assert entry.actor_role == "clinician"

    def test_entry_has_hash(self, logger):
        entry = _grant(logger)
        assert len(entry.entry_hash) == 64  # SHA-256 hex
        assert entry.entry_hash == entry.compute_hash()

    def test_entry_is_immutable(self, logger):
        entry = _grant(logger)
        with pytest.raises(Exception):  # FrozenInstanceError
            entry.action = AuditAction.ASSIGNMENT_REVOKED

    def test_explicit_timestamp(self, logger):
        ts = datetime(2024, 3, 1, tzinfo=timezone.utc)
        entry = logger.log(
            action=AuditAction.ASSIGNMENT_REVOKED,
            subject_id_hash="s",
            actor_id_hash="a",
            actor_role="clinician",
            timestamp=ts,
        )
        assert entry.timestamp == ts
        assert entry.details == {}


class TestHashChain:
    def test_first_entry_links_to_genesis(self, logger):
        assert _grant(logger).previous_hash == GENESIS_HASH

    def test_entries_form_chain(self, logger):
        first = _grant(logger)
        second = _grant(logger)
        assert second.previous_hash == first.entry_hash

    def test_valid_chain_verifies(self, logger):
        for _ in range(3):
            _grant(logger)
        assert logger.verify_chain()

    def test_empty_chain_verifies(self, logger):
        assert logger.verify_chain()

    def test_tampered_entry_detected(self, logger):
        _grant(logger)
        _grant(logger)

        original = logger._entries[0]
        logger._entries[0] = AuditEntry(
            entry_id=original.entry_id,
            timestamp=original.timestamp,
            action=original.action,
            subject_id_hash=original.subject_id_hash,
            actor_id_hash=original.actor_id_hash,
            actor_role=original.actor_role,
            details={"instrument_ids": ["gad7"]},
            previous_hash=original.previous_hash,
            entry_hash=original.entry_hash,
        )
        assert not logger.verify_chain()

    def test_dropped_entry_detected(self, logger):
        for _ in range(3):
            _grant(logger)
        del logger._entries[1]
        assert not logger.verify_chain()


class TestQuery:
    def test_filter_by_subject(self, logger):
        _grant(logger, subject="a")
        _grant(logger, subject="b")
        _grant(logger, subject="a")

        assert len(logger.query(subject_id_hash="a")) == 2

    def test_filter_by_action(self, logger):
        _grant(logger)
        logger.log(
            action=AuditAction.ASSIGNMENT_DENIED,
            subject_id_hash="subj_hash_1",
            actor_id_hash="subj_hash_1",
            actor_role="subject",
        )

        denied = logger.query(action=AuditAction.ASSIGNMENT_DENIED)
        assert [e.actor_role for e in denied] == ["subject"]

    def test_entries_returns_copy(self, logger):
        _grant(logger)
        logger.entries.clear()
        assert len(logger.entries) == 1
