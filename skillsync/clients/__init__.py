"""Expose constructed client wrappers."""

from .atproto_oauth import AtprotoOAuthClient, TokenSet
from .pds_records import PdsRecordClient, PdsRecordError
from .pds_resolver import PdsResolver
from .skill_repository import SkillRepository
from .sqlite_store import SQLiteStore

__all__ = [
    "AtprotoOAuthClient",
    "PdsRecordClient",
    "PdsRecordError",
    "PdsResolver",
    "SQLiteStore",
    "SkillRepository",
    "TokenSet",
]
