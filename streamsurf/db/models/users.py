"""
➡️ But : Définir la structure des tables de la base (ORM).

Représente les comptes : identité, mot de passe haché, rôle, mode de visibilité.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field

from .base import BaseModelDB


class UserRole(str, Enum):
    user = "user"
    admin = "admin"


class UserMode(str, Enum):
    private = "private"
    public = "public"


class User(BaseModelDB, table=True):
    username: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    hashed_password: str
    role: str = Field(default=UserRole.user.value, description="user | admin")
    mode: str = Field(default=UserMode.private.value, description="Accès au catalogue côté client : private | public")
    is_active: bool = Field(default=True)
    last_login: Optional[datetime] = Field(default=None)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin.value
