"""
➡️ But : Définir les formats de sortie des comptes (couche validation).

UserOut → réponse de l'API : n'expose jamais le hash du mot de passe.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: str
    mode: str
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
