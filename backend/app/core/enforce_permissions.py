"""Permission Enforcement — authorization rules for every gated procedure.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Return violation dict on denial, None on success
    - Owner is identified by immutable open_id; an empty owner setting means no owner
    - Owner outranks admin: owner role/account can never be altered

Design Decisions:
    - Pure functions over decorators: testable without an app or request
    - Violation dicts (not exceptions): routes raise via core.errors.error_from_violation,
      keeping the rules free of HTTP concerns
"""

from app.core.boundary_protocols import UserLike, AuthoredLike
from app.core.domain_types import Role, LoginMethod
from app.core.errors import ErrorCategory


def _forbidden(code: str, message: str) -> dict:
    return {
        "status": "error",
        "error_code": code,
        "category": ErrorCategory.FORBIDDEN.value,
        "message": message,
    }


def _bad_request(code: str, message: str) -> dict:
    return {
        "status": "error",
        "error_code": code,
        "category": ErrorCategory.BUSINESS_RULE.value,
        "message": message,
    }


def is_owner(user: UserLike, owner_open_id: str) -> bool:
    """True when user is the configured owner."""
    return bool(owner_open_id) and user.open_id == owner_open_id


def is_admin(user: UserLike) -> bool:
    return user.role == Role.ADMIN


def check_admin(user: UserLike) -> dict | None:
    """Admin-only procedures."""
    if not is_admin(user):
        return _forbidden(
            "ADMIN_REQUIRED", "You do not have required permission (10002)",
        )
    return None


def check_owner(user: UserLike, owner_open_id: str) -> dict | None:
    """Owner-only procedures (pin, inquiry deletion)."""
    if not is_owner(user, owner_open_id):
        return _forbidden("OWNER_REQUIRED", "Only the owner can do this.")
    return None


def check_can_post(user: UserLike) -> dict | None:
    """Creating or editing case studies requires a Google login."""
    if user.login_method != LoginMethod.GOOGLE:
        return _forbidden("GOOGLE_LOGIN_REQUIRED", "Google login required to post.")
    return None


def check_can_edit_case(user: UserLike, case: AuthoredLike) -> dict | None:
    """Only the author may edit, and only with a Google login."""
    violation = check_can_post(user)
    if violation:
        return violation
    if case.user_id != user.id:
        return _forbidden(
            "NOT_CASE_AUTHOR", "You do not have required permission (10002)",
        )
    return None


def check_can_delete_case(user: UserLike, case: AuthoredLike) -> dict | None:
    """Author or any admin may delete."""
    if case.user_id != user.id and not is_admin(user):
        return _forbidden(
            "NOT_CASE_AUTHOR", "You do not have required permission (10002)",
        )
    return None


def check_role_change(
    actor: UserLike, target: UserLike, new_role: str, owner_open_id: str,
) -> dict | None:
    """Owner stays admin; admins cannot demote themselves."""
    if is_owner(target, owner_open_id) and new_role != Role.ADMIN:
        return _forbidden("OWNER_IMMUTABLE", "Owner account role cannot be changed.")
    if target.id == actor.id and new_role != Role.ADMIN:
        return _bad_request("SELF_DEMOTION", "You cannot remove your own admin role.")
    return None


def check_user_delete(
    actor: UserLike, target: UserLike, owner_open_id: str,
) -> dict | None:
    """Owner cannot be deleted; admins cannot delete themselves."""
    if is_owner(target, owner_open_id):
        return _forbidden("OWNER_IMMUTABLE", "Owner account cannot be deleted.")
    if target.id == actor.id:
        return _bad_request("SELF_DELETION", "You cannot delete your own account.")
    return None
