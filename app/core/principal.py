from dataclasses import dataclass
import uuid

from app.models.user import Role


@dataclass(frozen=True)
class Principal:
    """The authenticated actor behind a request."""

    id: uuid.UUID
    role: str
    name: str = ""
    email: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
