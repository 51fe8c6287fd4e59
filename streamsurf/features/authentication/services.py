import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError

from streamsurf.core.config import settings
from streamsurf.core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from streamsurf.db.models.base import utcnow
from streamsurf.db.models.users import User, UserMode
from streamsurf.db.repositories.users import UserRepository
from streamsurf.features.authentication.schemas import (
    AuthOut,
    ForgotPasswordIn,
    LoginIn,
    RegisterIn,
    ResetPasswordIn,
    VerifyOtpIn,
)
from streamsurf.features.users.schemas import UserOut
from streamsurf.security.password import hash_password, verify_password
from streamsurf.security.tokens import JWTError, JWTSettings, create_access_token, decode_token
from streamsurf.utils.email import EmailSender
from streamsurf.utils.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service d'authentification : orchestre le repository, les tokens et le store OTP.
    Ne contient pas d'accès SQL direct et lève des AppError propres.
    """

    def __init__(
        self,
        *,
        user_repo: UserRepository,
        jwt_settings: JWTSettings,
        otp_store: Optional[KeyValueStore] = None,
        email_sender: Optional[EmailSender] = None,
        now_fn: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.user_repo = user_repo
        self.jwt = jwt_settings
        self.otp_store = otp_store
        self.email_sender = email_sender
        self.now_fn = now_fn

    # ---------- Helpers ----------
    def _auth_out(self, user: User) -> AuthOut:
        token = create_access_token(user_id=user.id, settings=self.jwt, now=self.now_fn())
        return AuthOut(
            user=UserOut.model_validate(user),
            token=token,
            expires_in=int(self.jwt.access_ttl.total_seconds()),
        )

    def _check_otp(self, email: str, otp: str) -> None:
        if self.otp_store is None:
            raise RuntimeError("OTP store is not configured")
        stored = self.otp_store.get(email.lower())
        if stored is None:
            raise ValidationError("OTP not found or expired")
        if not secrets.compare_digest(stored, otp.strip()):
            raise ValidationError("Invalid OTP")

    # ---------- Register ----------
    def register(self, payload: RegisterIn) -> AuthOut:
        if payload.password != payload.confirm_password:
            raise ValidationError("Passwords do not match")

        username = payload.username.strip().lower()
        email = payload.email.strip().lower()
        if self.user_repo.get_by_email(email):
            raise ConflictError("Email already registered")
        if self.user_repo.get_by_username(username):
            raise ConflictError("Username already taken")

        try:
            user = self.user_repo.create(
                username=username,
                email=email,
                hashed_password=hash_password(payload.password),
            )
        except IntegrityError:
            # inscription concurrente avec le même email ou username
            self.user_repo.rollback()
            raise ConflictError("Email or username already registered")
        logger.info("User registered: id=%s", user.id)
        return self._auth_out(user)

    # ---------- Login ----------
    def login(self, payload: LoginIn) -> AuthOut:
        user = self.user_repo.get_by_email(payload.email)
        if not user or not verify_password(payload.password, user.hashed_password):
            # Ne pas révéler si le compte existe
            raise UnauthorizedError("Invalid credentials")
        if not user.is_active:
            raise UnauthorizedError("Account has been deactivated")

        user = self.user_repo.update(user, last_login=utcnow())
        return self._auth_out(user)

    # ---------- Token -> user ----------
    def resolve_user(self, token: str) -> User:
        """Retrouve le compte porteur du token ; lève UnauthorizedError sinon."""
        try:
            decoded = decode_token(token, self.jwt)
        except JWTError:
            raise UnauthorizedError("Invalid or expired token")

        if decoded.get("typ") != "access":
            raise UnauthorizedError("Invalid token type")

        try:
            user_id = int(decoded.get("sub", ""))
        except ValueError:
            raise UnauthorizedError("Invalid token")

        user = self.user_repo.get(user_id)
        if not user:
            raise UnauthorizedError("User not found")
        if not user.is_active:
            raise UnauthorizedError("Account has been deactivated")
        return user

    # ---------- Mode ----------
    def update_mode(self, user: User, mode: str) -> User:
        allowed = [m.value for m in UserMode]
        if mode not in allowed:
            raise ValidationError(f"Invalid mode. Must be one of: {', '.join(allowed)}")
        return self.user_repo.update(user, mode=mode)

    # ---------- Mot de passe oublié (OTP) ----------
    def forgot_password(self, payload: ForgotPasswordIn) -> None:
        if self.otp_store is None or self.email_sender is None:
            raise RuntimeError("Password reset is not configured")

        user = self.user_repo.get_by_email(payload.email)
        if not user:
            raise NotFoundError("No account found with this email")
        if not user.is_active:
            raise ValidationError("Account has been deactivated")

        otp = "".join(secrets.choice("0123456789") for _ in range(settings.OTP_LENGTH))
        key = user.email.lower()
        self.otp_store.put(key, otp, timedelta(minutes=settings.OTP_TTL_MINUTES))
        try:
            self.email_sender.send_otp(email=user.email, otp=otp, username=user.username)
        except Exception:
            # code inutilisable si l'email n'est pas parti
            self.otp_store.delete(key)
            raise

    def verify_otp(self, payload: VerifyOtpIn) -> None:
        self._check_otp(payload.email, payload.otp)

    def reset_password(self, payload: ResetPasswordIn) -> None:
        self._check_otp(payload.email, payload.otp)
        user = self.user_repo.get_by_email(payload.email)
        if not user:
            raise NotFoundError("User not found")

        self.user_repo.update(user, hashed_password=hash_password(payload.new_password))
        self.otp_store.delete(payload.email.lower())
        logger.info("Password reset for user id=%s", user.id)
