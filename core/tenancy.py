# core/tenancy.py

from dataclasses import dataclass, field
from typing import List, Optional

from core.errors import OrganizationSuspended, TenantResolutionError, gateway_error
from core.logging_config import logger
from core.utils import normalize_email
from models.auth import Identity, Membership


@dataclass
class TenantContext:
    organization_id: str
    organization: dict = field(default_factory=dict)
    profile: Optional[dict] = None

    @property
    def is_suspended(self) -> bool:
        return bool(self.organization.get("is_suspended"))


def find_members_by_email(client, email: str, org_id: Optional[str] = None) -> List[dict]:
    """
    Roster rows whose email equals `email` ignoring case.
    ilike narrows the query; the exact comparison below stops "_" and "%"
    in an address from acting as wildcards.
    """
    wanted = normalize_email(email)
    if not wanted:
        return []

    query = client.table("members").select("*").ilike("email", wanted)
    if org_id is not None:
        query = query.eq("org_id", org_id)

    result = query.execute()
    return [row for row in (result.data or []) if normalize_email(row.get("email")) == wanted]


class TenantResolver:
    """
    Maps an identity to exactly one organization.

    The tenant comes from the identity's own profile row. Roster tables of
    other tenants are never scanned to guess one.
    """

    def __init__(self, client):
        self.client = client

    def get_profile(self, identity: Identity) -> Optional[dict]:
        try:
            result = (
                self.client.table("profiles")
                .select("*")
                .eq("id", identity.id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise gateway_error(e, "Failed to load profile") from e

        rows = result.data or []
        return rows[0] if rows else None

    def get_organization(self, organization_id: str) -> Optional[dict]:
        try:
            result = (
                self.client.table("organizations")
                .select("*")
                .eq("id", organization_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise gateway_error(e, "Failed to load organization") from e

        rows = result.data or []
        return rows[0] if rows else None

    def _context(self, organization_id: str, profile: Optional[dict]) -> TenantContext:
        organization = self.get_organization(organization_id)
        if not organization:
            logger.warning(f"Profile points at missing organization {organization_id}")
            raise TenantResolutionError("The organization linked to this account no longer exists")

        context = TenantContext(
            organization_id=str(organization_id),
            organization=organization,
            profile=profile,
        )
        if context.is_suspended:
            raise OrganizationSuspended()
        return context

    # -----------------------------------------------------
    # Normal requests
    # -----------------------------------------------------
    def resolve(self, identity: Identity) -> TenantContext:
        profile = self.get_profile(identity)
        if not profile:
            logger.warning(f"No profile for user {identity.id}")
            raise TenantResolutionError()

        organization_id = profile.get("organization_id")
        if not organization_id:
            logger.warning(f"Profile {identity.id} has no organization_id")
            raise TenantResolutionError()

        return self._context(organization_id, profile)

    # -----------------------------------------------------
    # First login after an invite (no profile yet)
    # -----------------------------------------------------
    def resolve_for_activation(self, identity: Identity) -> TenantContext:
        profile = self.get_profile(identity)
        if profile and profile.get("organization_id"):
            return self._context(profile["organization_id"], profile)

        # Written by core/invitations.py with the service role key; the
        # caller cannot choose it.
        invited_org = (identity.user_metadata or {}).get("organization_id")
        if not invited_org:
            raise TenantResolutionError()

        return self._context(invited_org, profile)

    # -----------------------------------------------------
    # Login org picker
    # -----------------------------------------------------
    def memberships(self, email: str) -> List[Membership]:
        try:
            rows = find_members_by_email(self.client, email)
            org_ids = sorted({str(r["org_id"]) for r in rows if r.get("org_id")})
            orgs = {}
            if org_ids:
                result = (
                    self.client.table("organizations")
                    .select("id, name, chapter, is_suspended")
                    .in_("id", org_ids)
                    .execute()
                )
                orgs = {str(o["id"]): o for o in (result.data or [])}
        except Exception as e:
            raise gateway_error(e, "Failed to load memberships") from e

        memberships = []
        for row in rows:
            org = orgs.get(str(row.get("org_id")))
            if not org:
                continue
            memberships.append(
                Membership(
                    member_id=str(row["id"]),
                    organization_id=str(org["id"]),
                    organization_name=org.get("name") or "Unnamed Org",
                    chapter=org.get("chapter"),
                    role=row.get("role"),
                    is_suspended=bool(org.get("is_suspended")),
                )
            )
        return memberships
