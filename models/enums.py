from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# ACCOUNT ACTIVATION
# -----------------------------------------------------
class ActivationState(BaseStrEnum):
    """Single blocking step for a session, in precedence order."""

    needs_recovery = "NeedsRecovery"
    needs_invite = "NeedsInvite"
    needs_setup = "NeedsSetup"
    ready = "Ready"


# -----------------------------------------------------
# MEMBER STATUS
# -----------------------------------------------------
class MemberStatus(BaseStrEnum):
    """Roster status. Stored capitalised; always compared case-insensitively."""

    pending = "Pending"
    active = "Active"
    inactive = "Inactive"


# -----------------------------------------------------
# EVENT TYPE
# -----------------------------------------------------
class EventType(BaseStrEnum):
    recruitment = "Recruitment"
    social = "Social"
    service = "Service"
    meeting = "Meeting"
    fundraiser = "Fundraiser"
    other = "Other"


# -----------------------------------------------------
# TRANSACTION TYPE
# -----------------------------------------------------
class TransactionType(BaseStrEnum):
    income = "income"
    expense = "expense"


# -----------------------------------------------------
# COMPLIANCE STATUS
# -----------------------------------------------------
class ComplianceStatus(BaseStrEnum):
    """Pending tasks past their due date are flipped to Overdue on read."""

    pending = "Pending"
    completed = "Completed"
    overdue = "Overdue"
