"""
➡️ But : Encapsuler toutes les opérations de base de données sur les comptes.

Ne contient aucune logique métier, juste de la persistance.
"""

from __future__ import annotations

from typing import Optional
from sqlmodel import select

from streamsurf.db.repositories.base import BaseRepository
from streamsurf.db.models.users import User

class UserRepository(BaseRepository[User]):
    """
    Repository pour la table User.
    Hérite du CRUD générique de BaseRepository.
    Les emails et usernames sont stockés en minuscules : les recherches aussi.
    """
    model = User

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(
            select(self.model).where(self.model.username == username.lower())
        ).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(
            select(self.model).where(self.model.email == email.lower())
        ).first()

    def email_taken_by_other(self, email: str, user_id: int) -> bool:
        stmt = select(self.model.id).where(
            self.model.email == email.lower(),
            self.model.id != user_id,
        ).limit(1)
        return self.session.exec(stmt).first() is not None
