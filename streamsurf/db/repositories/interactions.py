from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete
from sqlmodel import col, func, select

from streamsurf.db.repositories.base import BaseRepository
from streamsurf.db.models.interactions import (
    InteractionType,
    REACTION_TYPES,
    SavedVideo,
    VideoInteraction,
)
from streamsurf.db.models.users import User
from streamsurf.db.models.videos import Video


class InteractionRepository(BaseRepository[VideoInteraction]):
    """Journal des interactions : comptages groupés, réactions d'un user, purge."""
    model = VideoInteraction

    # ---------- COMPTEURS ----------

    def count_by_video_and_type(self, video_ids: Iterable[int]) -> Sequence[Tuple[int, str, int]]:
        """(video_id, type, total) pour toutes les vidéos demandées, en une seule requête groupée."""
        ids = list(video_ids)
        if not ids:
            return []
        stmt = (
            select(VideoInteraction.video_id, VideoInteraction.type, func.count(VideoInteraction.id))
            .where(col(VideoInteraction.video_id).in_(ids))
            .group_by(VideoInteraction.video_id, VideoInteraction.type)
        )
        return self.session.exec(stmt).all()

    def count_for_video(self, video_id: int, kind: InteractionType) -> int:
        stmt = select(func.count(VideoInteraction.id)).where(
            VideoInteraction.video_id == video_id,
            VideoInteraction.type == kind.value,
        )
        return int(self.session.exec(stmt).one())

    # ---------- RÉACTIONS D'UN USER ----------

    def list_user_reactions(self, user_id: int, video_ids: Iterable[int]) -> Sequence[Tuple[int, str]]:
        """(video_id, type) des like/dislike de l'utilisateur parmi les vidéos demandées."""
        ids = list(video_ids)
        if not ids:
            return []
        stmt = (
            select(VideoInteraction.video_id, VideoInteraction.type)
            .where(VideoInteraction.user_id == user_id)
            .where(col(VideoInteraction.video_id).in_(ids))
            .where(col(VideoInteraction.type).in_(REACTION_TYPES))
        )
        return self.session.exec(stmt).all()

    def get_user_reaction(self, user_id: int, video_id: int, kind: InteractionType) -> Optional[VideoInteraction]:
        stmt = select(VideoInteraction).where(
            VideoInteraction.user_id == user_id,
            VideoInteraction.video_id == video_id,
            VideoInteraction.type == kind.value,
        )
        return self.session.exec(stmt).first()

    # ---------- HISTORIQUE / ACTIVITÉ ----------

    def list_view_history(self, user_id: int, *, limit: int = 50) -> Sequence[Tuple[int, datetime]]:
        """(video_id, dernière vue) des vidéos publiées vues par l'utilisateur, plus récentes d'abord."""
        last_viewed = func.max(VideoInteraction.created_at).label("last_viewed")
        stmt = (
            select(VideoInteraction.video_id, last_viewed)
            .join(Video, Video.id == VideoInteraction.video_id)
            .where(VideoInteraction.user_id == user_id)
            .where(VideoInteraction.type == InteractionType.view.value)
            .where(col(Video.is_published).is_(True))
            .group_by(VideoInteraction.video_id)
            .order_by(last_viewed.desc())
            .limit(limit)
        )
        return self.session.exec(stmt).all()

    def list_recent_activity(self, *, limit: int = 1000) -> Sequence[Tuple[VideoInteraction, Optional[str], Optional[str], Optional[str]]]:
        """Dernières interactions avec username / email / titre de la vidéo."""
        stmt = (
            select(
                VideoInteraction,
                User.username.label("username"),
                User.email.label("user_email"),
                Video.title.label("video_title"),
            )
            .join(User, User.id == VideoInteraction.user_id, isouter=True)
            .join(Video, Video.id == VideoInteraction.video_id, isouter=True)
            .order_by(col(VideoInteraction.created_at).desc(), col(VideoInteraction.id).desc())
            .limit(limit)
        )
        return self.session.exec(stmt).all()

    # ---------- PURGE ----------

    def delete_views_older_than(self, cutoff: datetime) -> int:
        """Supprime les lignes `view` antérieures à cutoff ; retourne le nombre supprimé."""
        result = self.session.exec(
            delete(VideoInteraction)
            .where(VideoInteraction.type == InteractionType.view.value)
            .where(col(VideoInteraction.created_at) < cutoff)
        )
        self.session.commit()
        return int(result.rowcount or 0)

    def count_all_for_video(self, video_id: int) -> int:
        stmt = select(func.count(VideoInteraction.id)).where(VideoInteraction.video_id == video_id)
        return int(self.session.exec(stmt).one())


class SavedVideoRepository(BaseRepository[SavedVideo]):
    """Favoris (unicité user/vidéo portée par la contrainte DB)."""
    model = SavedVideo

    def get_by_user_and_video(self, user_id: int, video_id: int) -> Optional[SavedVideo]:
        stmt = select(SavedVideo).where(
            SavedVideo.user_id == user_id,
            SavedVideo.video_id == video_id,
        )
        return self.session.exec(stmt).first()

    def list_for_user(self, user_id: int) -> List[Tuple[SavedVideo, Video]]:
        """Favoris de l'utilisateur (vidéos publiées seulement), plus récents d'abord."""
        stmt = (
            select(SavedVideo, Video)
            .join(Video, Video.id == SavedVideo.video_id)
            .where(SavedVideo.user_id == user_id)
            .where(col(Video.is_published).is_(True))
            .order_by(col(SavedVideo.created_at).desc(), col(SavedVideo.id).desc())
        )
        return list(self.session.exec(stmt).all())

    def count_for_video(self, video_id: int) -> int:
        stmt = select(func.count(SavedVideo.id)).where(SavedVideo.video_id == video_id)
        return int(self.session.exec(stmt).one())
