"""Domain Types — enums and fixed keys shared by every layer.

Invariants:
    - All valid states encoded as Enums — no raw string matching
    - Ids stay plain ints: they come straight from integer primary keys

Design Decisions:
    - str Enums: serialize to JSON without custom encoders, compare equal to DB strings
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """User roles — maps to users.role column."""
    USER = "user"
    ADMIN = "admin"


class Category(str, Enum):
    """Case study categories — maps to case_studies.category column."""
    PROMPT = "prompt"
    AUTOMATION = "automation"
    TOOLS = "tools"
    BUSINESS = "business"
    ACTIVATION = "activation"


class CategoryFilter(str, Enum):
    """List filter: a Category, every case, or the caller's favorites."""
    ALL = "all"
    LIKED = "liked"
    PROMPT = "prompt"
    AUTOMATION = "automation"
    TOOLS = "tools"
    BUSINESS = "business"
    ACTIVATION = "activation"


class CaseSort(str, Enum):
    """Case study list orderings."""
    DEFAULT = "default"
    CREATED_DESC = "createdDesc"
    CREATED_ASC = "createdAsc"
    UPDATED_DESC = "updatedDesc"


class UserSort(str, Enum):
    """Admin user list orderings."""
    CREATED_DESC = "createdDesc"
    CREATED_ASC = "createdAsc"
    NAME_ASC = "nameAsc"
    NAME_DESC = "nameDesc"
    LAST_SIGNED_IN_DESC = "lastSignedInDesc"
    ROLE_ADMIN_FIRST = "roleAdminFirst"


class InquiryStatus(str, Enum):
    """Admin inquiry tabs."""
    OPEN = "open"
    RESOLVED = "resolved"


class LoginMethod(str, Enum):
    GOOGLE = "google"


# ─── Setting keys ────────────────────────────────────────────────

INVITE_CODE_SETTING_KEY = "auth.inviteCode"
PINNED_CASE_SETTING_KEY = "caseStudies.pinnedId"

UNKNOWN_AUTHOR_NAME = "不明"
INVITE_REQUIRED_MESSAGE = "招待コードが必要です"
