"""
➡️ But : Opérations d'administration (comptes, catalogue, journal d'activité).

Toutes les méthodes supposent que l'appelant est déjà authentifié comme admin
(contrôle fait par la dépendance get_current_admin).
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from fastapi import UploadFile

from streamsurf.core.config import settings
from streamsurf.core.errors import (
    CannotModifySelfError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from streamsurf.db.models.base import utcnow
from streamsurf.db.models.users import User, UserRole
from streamsurf.db.models.videos import Video, VideoCategory
from streamsurf.db.repositories.interactions import InteractionRepository
from streamsurf.db.repositories.users import UserRepository
from streamsurf.db.repositories.videos import VideoRepository
from streamsurf.features.admin.schemas import ActivityOut, CleanupOut
from streamsurf.features.media.services import MediaStorage
from streamsurf.features.videos.schemas import VideoOut, VideoUpdateIn
from streamsurf.features.videos.services import VideoService, normalize_tags
from streamsurf.utils.media_files import (
    ALLOWED_IMAGE_MIME,
    ALLOWED_VIDEO_MIME,
    build_object_key,
    validate_bytes,
)

logger = logging.getLogger(__name__)


def parse_tags_field(raw: Optional[str]) -> List[str]:
    """
    Champ `tags` d'un formulaire multipart : liste JSON (`["a","b"]`)
    ou chaîne séparée par des virgules (`a, b`).
    """
    if raw is None or not raw.strip():
        return []
    text = raw.strip()
    if text.startswith("["):
        try:
            values = json.loads(text)
        except json.JSONDecodeError:
            raise ValidationError("Invalid tags format")
        if not isinstance(values, list):
            raise ValidationError("Invalid tags format")
        return normalize_tags(values)
    return normalize_tags(text.split(","))


async def _close_quietly(upload: Optional[UploadFile]) -> None:
    if upload is None:
        return
    try:
        await upload.close()
    except Exception as e:
        logger.warning("Could not close temporary upload %s: %s", upload.filename, e)


class AdminService:
    def __init__(
        self,
        *,
        user_repo: UserRepository,
        video_repo: VideoRepository,
        interaction_repo: InteractionRepository,
        video_svc: VideoService,
        storage: MediaStorage,
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.users = user_repo
        self.videos = video_repo
        self.interactions = interaction_repo
        self.video_svc = video_svc
        self.storage = storage
        self.now_fn = now_fn

    # --------------- Helpers ---------------
    def _get_user_or_404(self, user_id: int) -> User:
        user = self.users.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def _get_video_or_404(self, video_id: int) -> Video:
        video = self.videos.get(video_id)
        if not video:
            raise NotFoundError("Video not found")
        return video

    @staticmethod
    def _check_category(category: str) -> str:
        allowed = [c.value for c in VideoCategory]
        if category not in allowed:
            raise ValidationError(f"Invalid category. Must be one of: {', '.join(allowed)}")
        return category

    # --------------- Comptes ---------------
    def list_users(self) -> Sequence[User]:
        return self.users.list(offset=0, limit=settings.ADMIN_LIST_LIMIT, newest_first=True)

    def update_role(self, *, admin: User, user_id: int, role: str) -> User:
        allowed = [r.value for r in UserRole]
        if role not in allowed:
            raise ValidationError(f"Invalid role. Must be one of: {', '.join(allowed)}")
        if user_id == admin.id:
            raise CannotModifySelfError("You cannot change your own role")
        user = self._get_user_or_404(user_id)
        user = self.users.update(user, role=role)
        logger.info("Admin %s set role of user %s to %s", admin.id, user.id, role)
        return user

    def update_email(self, *, admin: User, user_id: int, email: str) -> User:
        user = self._get_user_or_404(user_id)
        if self.users.email_taken_by_other(email, user.id):
            raise ConflictError("Email already in use")
        return self.users.update(user, email=email.lower())

    def update_status(self, *, admin: User, user_id: int, is_active: bool) -> User:
        if user_id == admin.id:
            raise CannotModifySelfError("You cannot change your own status")
        user = self._get_user_or_404(user_id)
        user = self.users.update(user, is_active=is_active)
        logger.info("Admin %s set is_active=%s on user %s", admin.id, is_active, user.id)
        return user

    def delete_user(self, *, admin: User, user_id: int) -> None:
        if user_id == admin.id:
            raise ForbiddenError("You cannot delete your own account")
        user = self._get_user_or_404(user_id)
        if user.is_admin:
            raise ForbiddenError("Cannot delete another admin")
        # interactions et favoris supprimés en cascade par la DB
        self.users.delete(user)
        logger.info("Admin %s deleted user %s", admin.id, user_id)

    # --------------- Catalogue ---------------
    def list_videos(self) -> List[VideoOut]:
        return self.video_svc.list_all_admin()

    async def upload_video(
        self,
        *,
        admin: User,
        file: UploadFile,
        thumbnail: Optional[UploadFile] = None,
        title: str,
        description: str,
        category: str = VideoCategory.other.value,
        tags: Optional[str] = None,
        duration: int = 0,
        is_published: bool = True,
    ) -> VideoOut:
        try:
            if not title.strip() or not description.strip():
                raise ValidationError("Title and description are required")
            category = self._check_category(category or VideoCategory.other.value)
            tag_list = parse_tags_field(tags)
            if duration < 0:
                raise ValidationError("Duration must be positive")

            raw = await file.read()
            try:
                mime, ext, _, sha = validate_bytes(
                    raw, max_mb=settings.MAX_VIDEO_UPLOAD_MB, allowed_mime=ALLOWED_VIDEO_MIME
                )
            except ValueError as e:
                raise ValidationError(str(e))

            thumb = None
            if thumbnail is not None and thumbnail.filename:
                thumb_raw = await thumbnail.read()
                try:
                    thumb_mime, thumb_ext, _, thumb_sha = validate_bytes(
                        thumb_raw, max_mb=settings.MAX_THUMBNAIL_UPLOAD_MB, allowed_mime=ALLOWED_IMAGE_MIME
                    )
                except ValueError as e:
                    raise ValidationError(f"Thumbnail: {e}")
                thumb = (thumb_raw, thumb_mime, thumb_ext, thumb_sha)

            video_key = build_object_key(prefix="videos", ext_with_dot=ext)
            video_url = self.storage.upload(raw, key=video_key, mime=mime, sha256=sha)

            thumbnail_key = None
            thumbnail_url = settings.DEFAULT_THUMBNAIL_URL
            if thumb:
                thumb_raw, thumb_mime, thumb_ext, thumb_sha = thumb
                thumbnail_key = build_object_key(prefix="thumbnails", ext_with_dot=thumb_ext)
                try:
                    thumbnail_url = self.storage.upload(
                        thumb_raw, key=thumbnail_key, mime=thumb_mime, sha256=thumb_sha
                    )
                except Exception:
                    self.storage.delete_quietly(video_key)
                    raise

            try:
                video = self.videos.create(
                    commit=False,
                    title=title.strip(),
                    description=description.strip(),
                    video_url=video_url,
                    thumbnail_url=thumbnail_url,
                    storage_key=video_key,
                    thumbnail_key=thumbnail_key,
                    duration=duration,
                    category=category,
                    is_published=is_published,
                    uploaded_by=admin.username,
                )
                self.videos.replace_tags(video.id, tag_list, commit=False)
                self.videos.commit()
            except Exception:
                self.videos.rollback()
                logger.exception("Video record creation failed, removing uploaded media")
                self.storage.delete_quietly(video_key)
                self.storage.delete_quietly(thumbnail_key)
                raise

            logger.info("Video %s uploaded by %s (%s)", video.id, admin.username, video_key)
            return self.video_svc.to_out_many([video])[0]
        finally:
            await _close_quietly(file)
            await _close_quietly(thumbnail)

    def update_video(self, video_id: int, payload: VideoUpdateIn) -> VideoOut:
        video = self._get_video_or_404(video_id)
        changes = payload.model_dump(exclude_unset=True)
        tags = changes.pop("tags", None)
        if "category" in changes and changes["category"] is not None:
            changes["category"] = VideoCategory(changes["category"]).value
        # champs obligatoires en DB : null ignoré
        changes = {k: v for k, v in changes.items() if v is not None}
        changes["updated_at"] = utcnow()

        video = self.videos.update(video, commit=False, **changes)
        if tags is not None:
            self.videos.replace_tags(video.id, normalize_tags(tags), commit=False)
        self.videos.commit()
        self.videos.session.refresh(video)
        return self.video_svc.to_out_many([video])[0]

    def delete_video(self, video_id: int) -> None:
        video = self._get_video_or_404(video_id)
        # best-effort : un objet orphelin ne bloque pas la suppression
        self.storage.delete_quietly(video.storage_key)
        self.storage.delete_quietly(video.thumbnail_key)
        self.videos.delete(video)
        logger.info("Video %s deleted", video_id)

    # --------------- Journal d'activité ---------------
    def list_activity(self) -> List[ActivityOut]:
        rows = self.interactions.list_recent_activity(limit=settings.ACTIVITY_LIST_LIMIT)
        return [
            ActivityOut(
                id=interaction.id,
                type=interaction.type,
                created_at=interaction.created_at,
                user_id=interaction.user_id,
                username=username or "Unknown",
                user_email=user_email or "",
                video_id=interaction.video_id,
                video_title=video_title or "Deleted video",
            )
            for interaction, username, user_email, video_title in rows
        ]

    def cleanup_activity(self) -> CleanupOut:
        """Supprime les vues plus anciennes que la fenêtre de rétention."""
        hours = settings.ACTIVITY_RETENTION_HOURS
        cutoff = self.now_fn() - timedelta(hours=hours)
        deleted = self.interactions.delete_views_older_than(cutoff)
        logger.info("Activity cleanup: %s view rows older than %sh deleted", deleted, hours)
        return CleanupOut(deleted_count=deleted, retention_hours=hours)
