from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from streamsurf.features.users.schemas import UserOut

# ---------- Inputs ----------

class RegisterIn(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    confirm_password: str

class LoginIn(BaseModel):
    email: EmailStr
    password: str

class ModeIn(BaseModel):
    mode: str = Field(description="private | public")

class ForgotPasswordIn(BaseModel):
    email: EmailStr

class VerifyOtpIn(BaseModel):
    email: EmailStr
    otp: str = Field(min_length=4, max_length=12)

class ResetPasswordIn(BaseModel):
    email: EmailStr
    otp: str = Field(min_length=4, max_length=12)
    new_password: str = Field(min_length=6, max_length=128)


# ---------- Outputs ----------

class AuthOut(BaseModel):
    user: UserOut
    token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int  # secondes

class ModeOut(BaseModel):
    mode: str
