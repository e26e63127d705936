"""Per-request authenticated identity."""

from dataclasses import dataclass
from typing import Optional

from taskhub.db.models import Role


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, derived once from the access token.

    Learn: role_claim keeps the raw string from the token. `role` maps it
    onto the Role enum and returns None for anything unrecognised, which
    the permission engine treats as "deny everything". The claim itself
    stays available for audit logs.
    """

    id: int
    email: str
    role_claim: str

    @property
    def role(self) -> Optional[Role]:
        return Role.parse(self.role_claim)

    @classmethod
    def from_claims(cls, claims: dict) -> "Principal":
        return cls(
            id=claims["id"],
            email=claims["email"],
            role_claim=claims["role"],
        )
