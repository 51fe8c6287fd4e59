import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from streamsurf.core.config import settings
from streamsurf.core.errors import NotFoundError, ValidationError
from streamsurf.db.models.users import User
from streamsurf.db.models.videos import Video, VideoCategory
from streamsurf.db.repositories.interactions import InteractionRepository, SavedVideoRepository
from streamsurf.db.repositories.videos import VideoRepository
from streamsurf.features.interactions.services import InteractionService
from streamsurf.features.videos.schemas import Pagination, VideoFilter, VideoOut, VideoPage

# tri -> sens par défaut (True = décroissant)
SORT_DEFAULT_DESC: Dict[str, bool] = {
    "createdAt": True,
    "views": True,
    "likes": True,
    "title": False,
    "duration": True,
}

ALL_CATEGORIES = {"", "all"}


def normalize_tags(raw: Optional[Sequence[str]]) -> List[str]:
    """minuscules, sans espaces autour, sans doublon, ordre conservé."""
    tags: List[str] = []
    for tag in raw or []:
        cleaned = str(tag).strip().lower()
        if cleaned and cleaned not in tags:
            tags.append(cleaned)
    return tags


def parse_tags_param(raw: Optional[str]) -> List[str]:
    """'a, B ,c' -> ['a', 'b', 'c']"""
    if not raw:
        return []
    return normalize_tags(raw.split(","))


class VideoService:
    """
    Catalogue vidéo : filtres, tri, pagination, tags, tendances.
    Chaque vidéo retournée est enrichie par l'agrégation (compteurs + état du user courant).
    """

    def __init__(
        self,
        *,
        repo: VideoRepository,
        interaction_svc: InteractionService,
        interaction_repo: InteractionRepository,
        saved_repo: SavedVideoRepository,
    ):
        self.repo = repo
        self.interaction_svc = interaction_svc
        self.interactions = interaction_repo
        self.saved = saved_repo

    # -------- Helpers --------

    def to_out_many(
        self,
        videos: Sequence[Video],
        *,
        user_id: Optional[int] = None,
        saved_at: Optional[Dict[int, datetime]] = None,
        viewed_at: Optional[Dict[int, datetime]] = None,
    ) -> List[VideoOut]:
        ids = [v.id for v in videos]
        aggregates = self.interaction_svc.get_aggregates(ids, user_id=user_id)
        tags = self.repo.tags_for(ids)
        out: List[VideoOut] = []
        for video in videos:
            agg = aggregates[video.id]
            out.append(
                VideoOut(
                    **video.model_dump(),
                    tags=tags.get(video.id, []),
                    likes=agg.likes,
                    dislikes=agg.dislikes,
                    views=agg.views,
                    user_interaction=agg.user_interaction,
                    saved_at=(saved_at or {}).get(video.id),
                    viewed_at=(viewed_at or {}).get(video.id),
                )
            )
        return out

    @staticmethod
    def _resolve_sort(sort_by: str, order: Optional[str]) -> bool:
        if sort_by not in SORT_DEFAULT_DESC:
            allowed = ", ".join(SORT_DEFAULT_DESC)
            raise ValidationError(f"Invalid sortBy '{sort_by}'. Allowed: {allowed}")
        if order is None:
            return SORT_DEFAULT_DESC[sort_by]
        return order.lower() == "desc"

    @staticmethod
    def _resolve_category(category: Optional[str]) -> Optional[str]:
        if category is None or category.strip().lower() in ALL_CATEGORIES:
            return None
        allowed = [c.value for c in VideoCategory]
        if category not in allowed:
            raise ValidationError(f"Invalid category '{category}'. Allowed: {', '.join(allowed)}")
        return category

    # -------- Reads --------

    def list_videos(self, flt: VideoFilter, *, user: Optional[User] = None) -> VideoPage:
        descending = self._resolve_sort(flt.sort_by, flt.order)
        category = self._resolve_category(flt.category)
        tags = normalize_tags(flt.tags)
        search = flt.search.strip() if flt.search else None

        total = self.repo.count_search(
            published_only=flt.published_only, q=search, category=category, tags=tags
        )
        videos = self.repo.search(
            offset=(flt.page - 1) * flt.limit,
            limit=flt.limit,
            published_only=flt.published_only,
            q=search,
            category=category,
            tags=tags,
            sort_by=flt.sort_by,
            descending=descending,
        )
        items = self.to_out_many(videos, user_id=user.id if user else None)
        return VideoPage(
            items=items,
            pagination=Pagination(
                page=flt.page,
                limit=flt.limit,
                total_pages=math.ceil(total / flt.limit) if total else 0,
                total_count=total,
                has_more=flt.page * flt.limit < total,
            ),
        )

    def get_video(self, video_id: int, *, user: Optional[User] = None) -> VideoOut:
        video = self.repo.get(video_id)
        # les vidéos non publiées ne sont visibles que par un admin
        if not video or (not video.is_published and not (user and user.is_admin)):
            raise NotFoundError("Video not found")
        return self.to_out_many([video], user_id=user.id if user else None)[0]

    def get_trending(self, *, user: Optional[User] = None) -> List[VideoOut]:
        ranked = self.repo.list_trending(limit=settings.TRENDING_LIMIT)
        videos = [video for video, _ in ranked]
        return self.to_out_many(videos, user_id=user.id if user else None)

    def get_tags(self) -> List[str]:
        return self.repo.list_distinct_tags(published_only=True)

    def list_saved(self, *, user: User) -> List[VideoOut]:
        rows = self.saved.list_for_user(user.id)
        videos = [video for _, video in rows]
        saved_at = {saved.video_id: saved.created_at for saved, _ in rows}
        return self.to_out_many(videos, user_id=user.id, saved_at=saved_at)

    def view_history(self, *, user: User) -> List[VideoOut]:
        rows = self.interactions.list_view_history(user.id, limit=settings.HISTORY_LIMIT)
        viewed_at = {video_id: last_viewed for video_id, last_viewed in rows}
        by_id = {v.id: v for v in self.repo.list_by_ids(viewed_at.keys(), published_only=True)}
        # ordre de la requête : dernière vue d'abord
        videos = [by_id[video_id] for video_id in viewed_at if video_id in by_id]
        return self.to_out_many(videos, user_id=user.id, viewed_at=viewed_at)

    def list_all_admin(self) -> List[VideoOut]:
        videos = self.repo.list(offset=0, limit=settings.ADMIN_LIST_LIMIT, newest_first=True)
        return self.to_out_many(videos)
