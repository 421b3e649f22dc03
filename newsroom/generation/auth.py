"""
Request authentication shared by the article and ticket endpoints.

Two header shapes are accepted:

- ``X-Platform-Secret`` (+ ``X-Tenant-ID``) for internal jobs and the platform admin
- ``X-Tenant-ID`` + ``X-API-Key`` for tenant sites

Both resolve to the same AuthContext; downstream code only asks whether the
caller is the platform.
"""

import secrets
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

from newsroom.core.exceptions import AuthenticationError
from newsroom.core.logging import get_logger
from newsroom.core.models import Tenant

logger = get_logger(__name__)

PLATFORM_SECRET_HEADER = "X-Platform-Secret"
TENANT_ID_HEADER = "X-Tenant-ID"
API_KEY_HEADER = "X-API-Key"


class TenantLookup(Protocol):
    async def get_tenant(self, tenant_id: str) -> Optional[Tenant]: ...


@dataclass(frozen=True)
class AuthContext:
    tenant: Optional[Tenant]
    is_platform: bool = False

    @property
    def tenant_id(self) -> Optional[str]:
        return self.tenant.id if self.tenant is not None else None


def _matches(provided: Optional[str], expected: Optional[str]) -> bool:
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode(), expected.encode())


async def authenticate(
    headers: Mapping[str, str],
    tenants: TenantLookup,
    platform_secret: Optional[str],
    require_tenant: bool = True,
) -> AuthContext:
    """
    Resolve request headers to an AuthContext.

    Args:
        headers: Request headers (case-insensitive mapping)
        tenants: Tenant lookup, usually a TenantRepository
        platform_secret: Configured platform secret
        require_tenant: When False a platform caller may omit X-Tenant-ID

    Raises:
        AuthenticationError: Missing or wrong credentials, unknown or suspended tenant
    """
    tenant_id = headers.get(TENANT_ID_HEADER)
    api_key = headers.get(API_KEY_HEADER)

    if _matches(headers.get(PLATFORM_SECRET_HEADER), platform_secret):
        if not tenant_id:
            if require_tenant:
                raise AuthenticationError("X-Tenant-ID is required")
            return AuthContext(tenant=None, is_platform=True)
        tenant = await tenants.get_tenant(tenant_id)
        if tenant is None:
            raise AuthenticationError("Tenant not found")
        return AuthContext(tenant=tenant, is_platform=True)

    if tenant_id and api_key:
        tenant = await tenants.get_tenant(tenant_id)
        if tenant is None:
            raise AuthenticationError("Tenant not found")
        if not _matches(api_key, tenant.api_key):
            logger.warning(f"Invalid API key for tenant {tenant_id}")
            raise AuthenticationError("Invalid API key")
        if tenant.status == "suspended":
            raise AuthenticationError("Tenant account suspended")
        return AuthContext(tenant=tenant)

    raise AuthenticationError("Missing authentication headers")
