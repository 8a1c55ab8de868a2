# ============================================
# PER-MEMBER PAGE PERMISSION MATRIX
# ============================================
# Each member row carries a JSON column shaped like:
#
#     {"Finances": {"create": false, "read": false, "update": false, "delete": false}, ...}
#
# Privileged roles ignore the matrix entirely. For everyone else:
#   • read:   missing means allowed, only an explicit False denies
#   • create / update / delete: missing means denied, only an explicit True grants
# ============================================

from typing import Dict, Optional

from core.errors import ActionForbidden, PageAccessDenied, gateway_error
from core.logging_config import logger
from core.tenancy import find_members_by_email

CRUD_ACTIONS = ("create", "read", "update", "delete")
MUTATING_ACTIONS = ("create", "update", "delete")

PAGES = (
    "Members",
    "Events",
    "Documents",
    "Compliance",
    "Finances",
    "History",
    "Settings",
)

# Landing page every member of a tenant may open.
DEFAULT_PAGE = "/overview"

PRIVILEGED_ROLES = frozenset({"admin", "president"})


def _check_page(page: str):
    if page not in PAGES:
        raise ValueError(f"Unknown page: {page!r}")


def _check_action(action: str):
    if action not in CRUD_ACTIONS:
        raise ValueError(f"Unknown action: {action!r}")


def is_privileged(role: Optional[str]) -> bool:
    return (role or "").strip().lower() in PRIVILEGED_ROLES


# -----------------------------------------------------
# Evaluation
# -----------------------------------------------------
def can_do(member: Optional[dict], page: str, action: str) -> bool:
    """
    Decide whether a roster row may perform `action` on `page`.
    A missing member row (removed from the roster, wrong tenant) never passes.
    """
    _check_page(page)
    _check_action(action)

    if not member:
        return False

    if is_privileged(member.get("role")):
        return True

    matrix = member.get("permissions") or {}
    page_perms = matrix.get(page) or {}

    if action == "read":
        return page_perms.get("read") is not False

    return page_perms.get(action) is True


def capabilities(member: Optional[dict], page: str) -> Dict[str, bool]:
    return {action: can_do(member, page, action) for action in CRUD_ACTIONS}


# -----------------------------------------------------
# Matrix editing (Settings → Permissions)
# -----------------------------------------------------
def default_matrix(role: Optional[str]) -> Dict[str, Dict[str, bool]]:
    """What the permission editor shows for a member with nothing stored yet."""
    privileged = is_privileged(role)
    return {
        page: {
            "create": privileged,
            "read": True,
            "update": privileged,
            "delete": privileged,
        }
        for page in PAGES
    }


def merged_matrix(role: Optional[str], stored: Optional[dict]) -> Dict[str, Dict[str, bool]]:
    merged = default_matrix(role)
    for page, perms in (stored or {}).items():
        if page in merged and isinstance(perms, dict):
            merged[page] = {**merged[page], **perms}
    return merged


def toggle_permission(matrix: dict, page: str, action: str) -> dict:
    """
    Flip one cell and return the whole new matrix.
    Read flips on its own. The three mutating actions move together and all
    take the inverse of the clicked cell.
    """
    _check_page(page)
    _check_action(action)

    current = dict((matrix or {}).get(page) or {})
    will_be_on = not current.get(action, action == "read")

    if action in MUTATING_ACTIONS:
        for a in MUTATING_ACTIONS:
            current[a] = will_be_on
    else:
        current[action] = will_be_on

    return {**(matrix or {}), page: current}


def toggle_all_for_page(matrix: dict, page: str) -> dict:
    _check_page(page)

    current = (matrix or {}).get(page) or {}
    all_on = all(current.get(a, a == "read") for a in CRUD_ACTIONS)

    return {**(matrix or {}), page: {a: not all_on for a in CRUD_ACTIONS}}


# -----------------------------------------------------
# Evaluator bound to one caller in one tenant
# -----------------------------------------------------
class PermissionEvaluator:
    """
    Answers can_do(page, action) for the caller's roster row.

    The role is always read from the Member row (never from the profile
    copy), so a role change on the roster takes effect on the next request.
    """

    def __init__(self, member: Optional[dict]):
        self.member = member

    @classmethod
    def load(cls, client, organization_id: str, email: str) -> "PermissionEvaluator":
        try:
            rows = find_members_by_email(client, email, org_id=organization_id)
        except Exception as e:
            raise gateway_error(e, "Failed to load member permissions") from e
        return cls(rows[0] if rows else None)

    @property
    def role(self) -> str:
        return ((self.member or {}).get("role") or "").strip()

    @property
    def is_privileged(self) -> bool:
        return self.member is not None and is_privileged(self.role)

    def can_do(self, page: str, action: str) -> bool:
        return can_do(self.member, page, action)

    def capabilities(self, page: str) -> Dict[str, bool]:
        return capabilities(self.member, page)

    def ensure(self, page: str, action: str = "read"):
        if self.can_do(page, action):
            return

        who = (self.member or {}).get("email", "unknown")
        logger.warning(f"Permission denied: {who} → {page}:{action}")

        if action == "read":
            raise PageAccessDenied(page, redirect_to=DEFAULT_PAGE)
        raise ActionForbidden(f"Insufficient permissions: '{page}:{action}' required")
