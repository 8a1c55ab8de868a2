# core/gateways.py

"""
Tenant-scoped data access.

Every read and write issued here carries an equality filter on the tenant
column, using the organization id the TenantResolver produced. Tenant
columns (and `id`) supplied by the caller are dropped before any write.
"""

from typing import Dict, Iterable, List, Optional

from core.errors import RecordConflict, RecordNotFound, TenantResolutionError, gateway_error
from core.logging_config import logger
from core.tenancy import find_members_by_email
from core.utils import normalize_email, sanitize, today_str
from models.enums import ComplianceStatus, MemberStatus, TransactionType

TENANT_COLUMNS = ("organization_id", "org_id")


class TenantGateway:
    table: str = ""
    tenant_column: str = "organization_id"
    order_by: Optional[str] = "created_at"
    descending: bool = True
    label: str = "record"

    def __init__(self, client, tenant_id: str):
        if not tenant_id:
            raise TenantResolutionError()
        self.client = client
        self.tenant_id = str(tenant_id)

    # -----------------------------------------------------
    # Internals
    # -----------------------------------------------------
    def _scoped(self, query):
        return query.eq(self.tenant_column, self.tenant_id)

    def _own(self, rows: Optional[Iterable[dict]]) -> List[dict]:
        return [r for r in (rows or []) if str(r.get(self.tenant_column)) == self.tenant_id]

    def _clean(self, fields: dict) -> dict:
        return sanitize(fields or {}, drop=("id", self.tenant_column) + TENANT_COLUMNS)

    def _execute(self, query, operation: str):
        try:
            return query.execute()
        except Exception as e:
            raise gateway_error(e, f"{operation} {self.label}") from e

    # -----------------------------------------------------
    # CRUD
    # -----------------------------------------------------
    def list(self, limit: Optional[int] = None) -> List[dict]:
        query = self._scoped(self.client.table(self.table).select("*"))
        if self.order_by:
            query = query.order(self.order_by, desc=self.descending)
        if limit:
            query = query.limit(limit)
        return self._own(self._execute(query, "Failed to load").data)

    def get(self, record_id: str) -> dict:
        query = self._scoped(self.client.table(self.table).select("*").eq("id", record_id)).limit(1)
        rows = self._own(self._execute(query, "Failed to load").data)
        if not rows:
            raise RecordNotFound(f"{self.label.capitalize()} not found")
        return rows[0]

    def create(self, fields: dict) -> dict:
        payload = self._clean(fields)
        payload[self.tenant_column] = self.tenant_id

        result = self._execute(self.client.table(self.table).insert(payload), "Failed to create")
        rows = result.data or []
        logger.info(f"Created {self.label} in {self.table} for org {self.tenant_id}")
        return rows[0] if rows else payload

    def update(self, record_id: str, fields: dict) -> dict:
        payload = self._clean(fields)
        if not payload:
            return self.get(record_id)

        query = self._scoped(self.client.table(self.table).update(payload).eq("id", record_id))
        rows = self._own(self._execute(query, "Failed to update").data)
        if not rows:
            raise RecordNotFound(f"{self.label.capitalize()} not found")
        return rows[0]

    def remove(self, record_id: str) -> dict:
        query = self._scoped(self.client.table(self.table).delete().eq("id", record_id))
        rows = self._own(self._execute(query, "Failed to delete").data)
        if not rows:
            raise RecordNotFound(f"{self.label.capitalize()} not found")
        logger.info(f"Deleted {self.label} {record_id} from {self.table} for org {self.tenant_id}")
        return rows[0]


# ============================================================
# Members (roster)
# ============================================================
class MemberGateway(TenantGateway):
    table = "members"
    tenant_column = "org_id"
    label = "member"

    def find_by_email(self, email: str) -> Optional[dict]:
        try:
            rows = find_members_by_email(self.client, email, org_id=self.tenant_id)
        except Exception as e:
            raise gateway_error(e, "Failed to look up member") from e
        rows = self._own(rows)
        return rows[0] if rows else None

    def _ensure_unique_email(self, email: str, exclude_id: Optional[str] = None):
        existing = self.find_by_email(email)
        if existing and str(existing.get("id")) != str(exclude_id):
            raise RecordConflict("This email is already registered within this organization.")

    def create(self, fields: dict) -> dict:
        fields = dict(fields or {})
        email = (fields.get("email") or "").strip()
        if not email:
            raise ValueError("Email is required")
        self._ensure_unique_email(email)

        fields["email"] = email
        fields.setdefault("status", MemberStatus.pending.value)
        fields.setdefault("role", "Member")
        return super().create(fields)

    def update(self, record_id: str, fields: dict) -> dict:
        fields = dict(fields or {})
        if fields.get("email"):
            current = self.get(record_id)
            new_email = fields["email"].strip()
            if normalize_email(new_email) != normalize_email(current.get("email")):
                self._ensure_unique_email(new_email, exclude_id=record_id)
            fields["email"] = new_email
        return super().update(record_id, fields)

    def save_permissions(self, member_id: str, matrix: Dict[str, Dict[str, bool]]) -> dict:
        """The whole matrix is written in one update; last write wins."""
        query = self._scoped(
            self.client.table(self.table).update({"permissions": matrix}).eq("id", member_id)
        )
        rows = self._own(self._execute(query, "Failed to save permissions for").data)
        if not rows:
            raise RecordNotFound("Member not found")
        return rows[0]

    def recent_joins(self, limit: int = 10) -> List[dict]:
        query = self._scoped(
            self.client.table(self.table).select("id, full_name, joined_date, created_at, org_id")
        ).order("joined_date", desc=True).limit(limit)
        return self._own(self._execute(query, "Failed to load").data)


# ============================================================
# Events
# ============================================================
class EventGateway(TenantGateway):
    table = "events"
    order_by = "start_time"
    descending = False
    label = "event"

    def upcoming(self, after_iso: str, limit: int = 4) -> List[dict]:
        query = (
            self._scoped(self.client.table(self.table).select("*"))
            .gte("start_time", after_iso)
            .order("start_time", desc=False)
            .limit(limit)
        )
        return self._own(self._execute(query, "Failed to load").data)


# ============================================================
# Finances
# ============================================================
class FinanceGateway(TenantGateway):
    table = "finances"
    order_by = "transaction_date"
    descending = True
    label = "transaction"

    # Stored amounts carry their sign: expenses negative, income positive.
    @staticmethod
    def _signed(fields: dict, current_type: Optional[str] = None) -> dict:
        kind = fields.get("type") or current_type
        if fields.get("amount") is not None and kind:
            amount = abs(float(fields["amount"]))
            fields["amount"] = -amount if kind == TransactionType.expense.value else amount
        return fields

    def create(self, fields: dict) -> dict:
        fields = dict(fields or {})
        fields.setdefault("category", "Dues")
        return super().create(self._signed(fields))

    def update(self, record_id: str, fields: dict) -> dict:
        fields = dict(fields or {})
        current = self.get(record_id)
        if "type" in fields and fields.get("amount") is None:
            fields["amount"] = current.get("amount")
        return super().update(record_id, self._signed(fields, current.get("type")))

    @staticmethod
    def totals(rows: Iterable[dict]) -> Dict[str, float]:
        income = 0.0
        expenses = 0.0
        for row in rows:
            amount = abs(float(row.get("amount") or 0))
            if row.get("type") == TransactionType.income.value:
                income += amount
            elif row.get("type") == TransactionType.expense.value:
                expenses += amount
        return {"income": income, "expenses": expenses, "balance": income - expenses}


# ============================================================
# Compliance
# ============================================================
class ComplianceGateway(TenantGateway):
    table = "compliance"
    order_by = "due_date"
    descending = False
    label = "compliance task"

    def mark_overdue(self, rows: List[dict], today: Optional[str] = None) -> List[dict]:
        """Pending tasks whose due date has passed are written back as Overdue."""
        today = today or today_str()
        for task in rows:
            status = (task.get("status") or "").lower()
            due = task.get("due_date")
            if status == ComplianceStatus.pending.value.lower() and due and str(due) < today:
                self.update(task["id"], {"status": ComplianceStatus.overdue.value})
                task["status"] = ComplianceStatus.overdue.value
        return rows

    @staticmethod
    def progress(rows: List[dict]) -> Dict[str, int]:
        total = len(rows)
        completed = sum(
            1 for t in rows
            if (t.get("status") or "").lower() == ComplianceStatus.completed.value.lower()
        )
        percent = round(completed / total * 100) if total else 0
        return {"total": total, "completed": completed, "percent": percent}


# ============================================================
# Documents
# ============================================================
class DocumentGateway(TenantGateway):
    table = "documents"
    tenant_column = "org_id"
    label = "document"


# ============================================================
# Communications (written by the send-email function)
# ============================================================
class CommunicationGateway(TenantGateway):
    table = "communications"
    tenant_column = "org_id"
    label = "communication"


# ============================================================
# The caller's own organization row
# ============================================================
class OrganizationGateway(TenantGateway):
    table = "organizations"
    tenant_column = "id"
    order_by = None
    label = "organization"

    EDITABLE = ("name", "chapter", "brand_color", "admin_email", "phone", "monthly_fee")

    def get_own(self) -> dict:
        return self.get(self.tenant_id)

    def update_own(self, fields: dict) -> dict:
        payload = {k: v for k, v in (fields or {}).items() if k in self.EDITABLE}
        return self.update(self.tenant_id, payload)
