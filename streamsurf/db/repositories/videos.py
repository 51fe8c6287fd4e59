# streamsurf/db/repositories/videos.py
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete
from sqlmodel import col, func, or_, select

from streamsurf.db.repositories.base import BaseRepository
from streamsurf.db.models.videos import Video, VideoTag
from streamsurf.db.models.interactions import InteractionType, VideoInteraction


class VideoRepository(BaseRepository[Video]):
    """CRUD Vidéos + requêtes catalogue (filtres, tri, tags, tendances)."""
    model = Video

    # ---------- HELPERS ----------

    def _catalog_filters(
        self,
        *,
        published_only: bool,
        q: Optional[str],
        category: Optional[str],
        tags: Optional[Sequence[str]],
    ) -> list:
        """
        Conditions WHERE communes à la liste et au comptage.
        - q    : recherche insensible à la casse sur title/description
        - tags : la vidéo doit porter TOUS les tags demandés (ET logique)
        """
        conditions = []
        if published_only:
            conditions.append(col(Video.is_published).is_(True))
        if q:
            conditions.append(
                or_(
                    col(Video.title).icontains(q, autoescape=True),
                    col(Video.description).icontains(q, autoescape=True),
                )
            )
        if category:
            conditions.append(col(Video.category) == category)
        if tags:
            wanted = sorted(set(tags))
            having_all = (
                select(VideoTag.video_id)
                .where(col(VideoTag.tag).in_(wanted))
                .group_by(VideoTag.video_id)
                .having(func.count(func.distinct(VideoTag.tag)) == len(wanted))
            )
            conditions.append(col(Video.id).in_(having_all))
        return conditions

    @staticmethod
    def _interaction_count_subquery(kind: InteractionType):
        return (
            select(
                VideoInteraction.video_id.label("video_id"),
                func.count(VideoInteraction.id).label("total"),
            )
            .where(VideoInteraction.type == kind.value)
            .group_by(VideoInteraction.video_id)
            .subquery()
        )

    # ---------- CATALOGUE ----------

    def search(
        self,
        *,
        offset: int = 0,
        limit: int = 12,
        published_only: bool = True,
        q: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        sort_by: str = "createdAt",
        descending: bool = True,
    ) -> Sequence[Video]:
        """
        Liste paginée du catalogue.
        sort_by : createdAt | views | likes | title | duration
        Les tris views/likes s'appuient sur le journal d'interactions (pas de compteur stocké).
        """
        stmt = select(Video).where(
            *self._catalog_filters(published_only=published_only, q=q, category=category, tags=tags)
        )

        if sort_by in ("views", "likes"):
            kind = InteractionType.view if sort_by == "views" else InteractionType.like
            counts = self._interaction_count_subquery(kind)
            stmt = stmt.outerjoin(counts, counts.c.video_id == Video.id)
            key = func.coalesce(counts.c.total, 0)
        else:
            key = {
                "createdAt": col(Video.created_at),
                "title": col(Video.title),
                "duration": col(Video.duration),
            }[sort_by]

        stmt = stmt.order_by(key.desc() if descending else key.asc(), col(Video.id).desc())
        stmt = stmt.offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def count_search(
        self,
        *,
        published_only: bool = True,
        q: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> int:
        stmt = select(func.count(Video.id)).where(
            *self._catalog_filters(published_only=published_only, q=q, category=category, tags=tags)
        )
        return int(self.session.exec(stmt).one())

    def list_trending(self, *, limit: int = 10) -> Sequence[Tuple[Video, int]]:
        """Vidéos publiées classées par nombre d'événements `view` (desc)."""
        view_count = func.count(VideoInteraction.id).label("view_count")
        stmt = (
            select(Video, view_count)
            .join(VideoInteraction, VideoInteraction.video_id == Video.id)
            .where(VideoInteraction.type == InteractionType.view.value)
            .where(col(Video.is_published).is_(True))
            .group_by(Video.id)
            .order_by(view_count.desc(), col(Video.id).desc())
            .limit(limit)
        )
        return self.session.exec(stmt).all()

    def list_by_ids(self, ids: Iterable[int], *, published_only: bool = True) -> Sequence[Video]:
        ids = list(ids)
        if not ids:
            return []
        stmt = select(Video).where(col(Video.id).in_(ids))
        if published_only:
            stmt = stmt.where(col(Video.is_published).is_(True))
        return self.session.exec(stmt).all()

    # ---------- TAGS ----------

    def list_distinct_tags(self, *, published_only: bool = True) -> List[str]:
        stmt = select(VideoTag.tag).join(Video, Video.id == VideoTag.video_id)
        if published_only:
            stmt = stmt.where(col(Video.is_published).is_(True))
        stmt = stmt.distinct().order_by(VideoTag.tag)
        return list(self.session.exec(stmt).all())

    def tags_for(self, video_ids: Iterable[int]) -> Dict[int, List[str]]:
        ids = list(video_ids)
        tags: Dict[int, List[str]] = {vid: [] for vid in ids}
        if not ids:
            return tags
        stmt = (
            select(VideoTag.video_id, VideoTag.tag)
            .where(col(VideoTag.video_id).in_(ids))
            .order_by(VideoTag.video_id, VideoTag.id)
        )
        for video_id, tag in self.session.exec(stmt).all():
            tags[video_id].append(tag)
        return tags

    def replace_tags(self, video_id: int, tags: Sequence[str], *, commit: bool = True) -> None:
        """Remplace l'ensemble des tags d'une vidéo (tags déjà normalisés)."""
        self.session.exec(delete(VideoTag).where(col(VideoTag.video_id) == video_id))
        for tag in tags:
            self.session.add(VideoTag(video_id=video_id, tag=tag))
        if commit:
            self.session.commit()
        else:
            self.session.flush()
