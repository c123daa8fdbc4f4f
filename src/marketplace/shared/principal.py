"""The acting principal threaded explicitly into every operation."""

from dataclasses import dataclass
from enum import Enum

from marketplace.shared.errors import Unauthenticated


class Role(Enum):
    CUSTOMER = "customer"
    FARMER = "farmer"
    ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    """An authenticated caller, as supplied by the identity collaborator."""

    id: str
    role: Role

    @classmethod
    def of(cls, principal_id: str | None, role: str | None) -> "Principal":
        if not principal_id or not role:
            raise Unauthenticated()
        try:
            return cls(id=str(principal_id), role=Role(role.lower()))
        except ValueError as exc:
            raise Unauthenticated(f"Unknown role '{role}'") from exc

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_customer(self) -> bool:
        return self.role == Role.CUSTOMER

    @property
    def is_farmer(self) -> bool:
        return self.role == Role.FARMER
