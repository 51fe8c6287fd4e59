from fastapi import APIRouter, Depends, status

from streamsurf.api.v1.dependencies import get_auth_service, get_current_user
from streamsurf.core.responses import ApiResponse, MessageOut, ok
from streamsurf.db.models.users import User
from streamsurf.features.authentication.services import AuthService
from streamsurf.features.authentication.schemas import (
    AuthOut,
    ForgotPasswordIn,
    LoginIn,
    ModeIn,
    ModeOut,
    RegisterIn,
    ResetPasswordIn,
    VerifyOtpIn,
)
from streamsurf.features.users.schemas import UserOut

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Register
# -----------------------------
@router.post(
    "/register",
    summary="Créer un compte",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[AuthOut],
)
def register(payload: RegisterIn, svc: AuthService = Depends(get_auth_service)):
    return ok(svc.register(payload), "User registered successfully")

# -----------------------------
# Login
# -----------------------------
@router.post(
    "/login",
    summary="Se connecter",
    description="Retourne l'utilisateur et un access token (30 jours).",
    response_model=ApiResponse[AuthOut],
)
def login(payload: LoginIn, svc: AuthService = Depends(get_auth_service)):
    return ok(svc.login(payload), "Login successful")

# -----------------------------
# Me (profil courant)
# -----------------------------
@router.get(
    "/me",
    summary="Récupérer l'utilisateur courant",
    response_model=ApiResponse[UserOut],
    responses={
        200: {"description": "Utilisateur courant"},
        401: {"description": "Token invalide ou expiré"},
    },
)
def me(user: User = Depends(get_current_user)):
    return ok(UserOut.model_validate(user))

# -----------------------------
# Mode private / public
# -----------------------------
@router.put(
    "/mode",
    summary="Changer le mode d'accès (private | public)",
    response_model=ApiResponse[ModeOut],
)
def update_mode(
    payload: ModeIn,
    user: User = Depends(get_current_user),
    svc: AuthService = Depends(get_auth_service),
):
    user = svc.update_mode(user, payload.mode)
    return ok(ModeOut(mode=user.mode), "Mode updated successfully")

# -----------------------------
# Logout
# -----------------------------
@router.post(
    "/logout",
    summary="Se déconnecter",
    description="Sans état côté serveur : le client supprime son token.",
    response_model=MessageOut,
)
def logout(user: User = Depends(get_current_user)):
    return MessageOut(message="Logged out successfully")

# -----------------------------
# Mot de passe oublié (OTP)
# -----------------------------
@router.post(
    "/forgot-password",
    summary="Envoyer un code de réinitialisation par email",
    response_model=MessageOut,
    responses={
        404: {"description": "Aucun compte pour cet email"},
        500: {"description": "Échec d'envoi de l'email"},
    },
)
def forgot_password(payload: ForgotPasswordIn, svc: AuthService = Depends(get_auth_service)):
    svc.forgot_password(payload)
    return MessageOut(message="OTP sent to your email")


@router.post(
    "/verify-otp",
    summary="Vérifier un code de réinitialisation",
    response_model=MessageOut,
)
def verify_otp(payload: VerifyOtpIn, svc: AuthService = Depends(get_auth_service)):
    svc.verify_otp(payload)
    return MessageOut(message="OTP verified successfully")


@router.post(
    "/reset-password",
    summary="Réinitialiser le mot de passe avec le code reçu",
    response_model=MessageOut,
)
def reset_password(payload: ResetPasswordIn, svc: AuthService = Depends(get_auth_service)):
    svc.reset_password(payload)
    return MessageOut(message="Password reset successfully")
