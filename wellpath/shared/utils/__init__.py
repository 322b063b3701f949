"""Shared utilities for the Wellpath assessment engine."""
from .pii import ACTOR_ID_KIND, SUBJECT_ID_KIND, hash_pii, configure_pii_salt

__all__ = ["ACTOR_ID_KIND", "SUBJECT_ID_KIND", "hash_pii", "configure_pii_salt"]
