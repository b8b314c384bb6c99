from dataclasses import dataclass
from enum import Enum as PyEnum


class Role(str, PyEnum):
    CUSTOMER = "customer"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """Пользователь, от имени которого выполняется операция"""

    user_id: str
    role: Role = Role.CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
