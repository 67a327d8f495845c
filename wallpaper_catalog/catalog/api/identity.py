"""
Hooks through which the external identity provider hands the catalog an
authenticated Principal. Login and session handling live outside this package.
"""
from aiohttp import web

from wallpaper_catalog.catalog.services.owners import get_principal_for_owner
from wallpaper_catalog.catalog.services.schemas import Principal

PRINCIPAL_KEY = "principal"


class IdentityProvider:
    """Reads a Principal placed on the request by upstream authentication middleware."""

    def get_request_principal(self, request: web.Request) -> Principal | None:
        principal = request.get(PRINCIPAL_KEY)
        return principal if isinstance(principal, Principal) else None


class TrustedHeaderIdentity(IdentityProvider):
    """
    Resolves the owner id from a header set by an authenticating reverse proxy.
    Only safe behind a proxy that strips the header from client requests.
    """

    def __init__(self, header: str = "X-Owner-Id"):
        self.header = header

    def get_request_principal(self, request: web.Request) -> Principal | None:
        principal = super().get_request_principal(request)
        if principal is not None:
            return principal
        owner_id = (request.headers.get(self.header) or "").strip()
        if not owner_id:
            return None
        return get_principal_for_owner(owner_id)
