from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Enveloppe commune : {success, message, data}."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class MessageOut(BaseModel):
    success: bool = True
    message: str


def ok(data=None, message: Optional[str] = None) -> dict:
    return {"success": True, "message": message, "data": data}
