from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr


class RoleIn(BaseModel):
    role: str

class EmailIn(BaseModel):
    email: EmailStr

class StatusIn(BaseModel):
    is_active: bool


class ActivityOut(BaseModel):
    id: int
    type: str
    created_at: datetime
    user_id: int
    username: str
    user_email: str
    video_id: int
    video_title: str

class CleanupOut(BaseModel):
    deleted_count: int
    retention_hours: int
