"""Realm role helpers and the verified-claims model."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable


IDM_ADMIN = "IDM_ADMIN"
IDM_USER = "IDM_USER"

# Standard registered claims kept alongside the realm roles
REGISTERED_CLAIMS = ("iss", "sub", "aud", "exp", "nbf", "iat", "jti")


def collect_roles(claims: dict) -> list[str]:
    """Collect realm roles from a decoded token payload (realm_access.roles)."""
    roles: list[str] = []
    realm_access = claims.get("realm_access")
    if not isinstance(realm_access, dict):
        return roles
    for role in realm_access.get("roles") or []:
        if isinstance(role, str) and role not in roles:
            roles.append(role)
    return roles


@dataclass
class IdmClaims:
    """Verified token claims: realm roles plus the registered claims."""
    roles: list[str] = field(default_factory=list)
    registered: dict = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: dict) -> "IdmClaims":
        registered = {key: claims[key] for key in REGISTERED_CLAIMS if key in claims}
        return cls(roles=collect_roles(claims), registered=registered)

    @property
    def subject(self) -> str:
        return str(self.registered.get("sub", ""))

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return any(role in self.roles for role in roles)
