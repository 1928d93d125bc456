"""Student entitlements module.

Canonical record shape shared by every entitlement service:
- StudentAccount: identity anchor keyed by mobile
- Entitlement: one course's paid state, expiry, attempts and progress
- LegacyEnrollment: single-course fields of pre-migration accounts
- UserStore: persistence contract (Cassandra implementation included)
"""

from .catalog import CourseDescriptor, practice_sibling, resolve_courses
from .migration import migrate_legacy
from .models import (
    ENROLLMENTS_TABLES_CQL,
    LEGACY_MIGRATION_ORDER_ID,
    Entitlement,
    LegacyEnrollment,
    StudentAccount,
)
from .schemas import EntitlementSummary, SessionGrant, StudentSummary
from .store import CassandraUserStore, UserStore


__all__ = [
    "ENROLLMENTS_TABLES_CQL",
    "LEGACY_MIGRATION_ORDER_ID",
    "CassandraUserStore",
    "CourseDescriptor",
    "Entitlement",
    "EntitlementSummary",
    "LegacyEnrollment",
    "SessionGrant",
    "StudentAccount",
    "StudentSummary",
    "UserStore",
    "migrate_legacy",
    "practice_sibling",
    "resolve_courses",
]
