# -------------------------
# Auth / activation Models
# -------------------------
from .auth import (
    Identity,
    LoginRequest,
    LoginResponse,
    AuthSession,
    Membership,
    SelectOrganizationRequest,
    AccessRequest,
    RecoveryVerifyRequest,
    InviteActivationRequest,
    RecoveryResetRequest,
    SetupRequest,
    ActivationStatus,
    ActivationResult,
)

# -------------------------
# Enums
# -------------------------
from .enums import (
    ActivationState,
    MemberStatus,
    EventType,
    TransactionType,
    ComplianceStatus,
)

# -------------------------
# Member Models
# -------------------------
from .member import (
    MemberCreate,
    MemberUpdate,
    MemberRead,
    MemberEmailRequest,
    MemberPermissions,
    PermissionToggleRequest,
    PermissionToggleAllRequest,
)

# -------------------------
# Event Models
# -------------------------
from .event import (
    EventBase,
    EventCreate,
    EventRead,
    EventUpdate,
)

# -------------------------
# Finance Models
# -------------------------
from .finance import (
    TransactionCreate,
    TransactionRead,
    TransactionUpdate,
    FinanceTotals,
)

# -------------------------
# Compliance Models
# -------------------------
from .compliance import (
    ComplianceCreate,
    ComplianceRead,
    ComplianceUpdate,
)

# -------------------------
# Document Models
# -------------------------
from .document import (
    DocumentCreate,
    DocumentRead,
    DocumentUpdate,
)

# -------------------------
# Communication Models
# -------------------------
from .communication import CommunicationRead

# -------------------------
# Organization Models
# -------------------------
from .organization import (
    OrganizationCreate,
    OrganizationRead,
    OrganizationUpdate,
    OrganizationSettingsUpdate,
    ProfileUpdate,
    PasswordChangeRequest,
)
