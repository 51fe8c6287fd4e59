"""
➡️ But : Modèle d'engagement (vues, likes, dislikes, favoris) et son agrégation.

- Les compteurs sont TOUJOURS recalculés depuis le journal d'interactions (source de vérité unique).
- like / dislike s'excluent mutuellement : retrait de la réaction opposée + insertion dans UNE transaction.
- toggle_reaction : bascule (deux appels identiques = retour à l'état initial).
- set_reaction    : idempotent (l'état final est celui demandé, quel que soit l'état initial).
"""

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.exc import IntegrityError

from streamsurf.core.errors import ConflictError, NotFoundError
from streamsurf.db.models.interactions import InteractionType
from streamsurf.db.repositories.interactions import InteractionRepository, SavedVideoRepository
from streamsurf.db.repositories.videos import VideoRepository
from streamsurf.features.videos.schemas import (
    ReactionOut,
    SaveStateOut,
    VideoAggregate,
    ViewOut,
)

logger = logging.getLogger(__name__)

_COUNT_FIELD = {
    InteractionType.view.value: "views",
    InteractionType.like.value: "likes",
    InteractionType.dislike.value: "dislikes",
}

_OPPOSITE = {
    InteractionType.like: InteractionType.dislike,
    InteractionType.dislike: InteractionType.like,
}


class InteractionService:
    def __init__(
        self,
        *,
        video_repo: VideoRepository,
        interaction_repo: InteractionRepository,
        saved_repo: SavedVideoRepository,
    ):
        self.videos = video_repo
        self.interactions = interaction_repo
        self.saved = saved_repo

    # --------------- Helpers ---------------
    def _ensure_video_exists(self, video_id: int) -> None:
        if not self.videos.get(video_id):
            raise NotFoundError("Video not found")

    @staticmethod
    def _ensure_reaction_kind(kind: InteractionType) -> None:
        if kind not in _OPPOSITE:
            raise ValueError(f"Not a reaction: {kind}")

    def _reaction_state(self, user_id: int, video_id: int) -> ReactionOut:
        agg = self.get_aggregates([video_id], user_id=user_id)[video_id]
        return ReactionOut(
            video_id=video_id,
            likes=agg.likes,
            dislikes=agg.dislikes,
            user_liked=agg.user_interaction.like,
            user_disliked=agg.user_interaction.dislike,
        )

    def _commit_reaction_change(self, user_id: int, video_id: int) -> None:
        try:
            self.interactions.commit()
        except IntegrityError:
            # requête concurrente du même user : l'index unique a refusé le doublon
            self.interactions.rollback()
            logger.warning("Concurrent reaction change on video %s by user %s", video_id, user_id)

    # --------------- Agrégation ---------------
    def get_aggregates(
        self,
        video_ids: Iterable[int],
        *,
        user_id: Optional[int] = None,
    ) -> Dict[int, VideoAggregate]:
        """
        Compteurs + état du user pour chaque vidéo demandée.
        Chaque id reçoit une entrée, même sans aucune interaction (valeurs à zéro).
        Aucune écriture.
        """
        ids = list(dict.fromkeys(video_ids))
        result = {video_id: VideoAggregate() for video_id in ids}
        if not ids:
            return result

        for video_id, kind, total in self.interactions.count_by_video_and_type(ids):
            field = _COUNT_FIELD.get(kind)
            if field:
                setattr(result[video_id], field, int(total))

        if user_id is not None:
            for video_id, kind in self.interactions.list_user_reactions(user_id, ids):
                setattr(result[video_id].user_interaction, kind, True)

        return result

    # --------------- Réactions ---------------
    def toggle_reaction(self, *, user_id: int, video_id: int, kind: InteractionType) -> ReactionOut:
        """
        - réaction `kind` déjà présente → retirée (état neutre) ;
        - sinon retrait de la réaction opposée éventuelle puis insertion de `kind`.
        Retourne les compteurs recalculés après l'écriture.
        """
        self._ensure_reaction_kind(kind)
        self._ensure_video_exists(video_id)

        existing = self.interactions.get_user_reaction(user_id, video_id, kind)
        if existing:
            self.interactions.delete(existing, commit=False)
        else:
            opposite = self.interactions.get_user_reaction(user_id, video_id, _OPPOSITE[kind])
            if opposite:
                self.interactions.delete(opposite, commit=False)
            try:
                self.interactions.create(commit=False, video_id=video_id, user_id=user_id, type=kind.value)
            except IntegrityError:
                self.interactions.rollback()
                logger.warning("Concurrent %s on video %s by user %s", kind.value, video_id, user_id)
                return self._reaction_state(user_id, video_id)

        self._commit_reaction_change(user_id, video_id)
        return self._reaction_state(user_id, video_id)

    def set_reaction(self, *, user_id: int, video_id: int, kind: Optional[InteractionType]) -> ReactionOut:
        """Place l'utilisateur dans l'état `kind` (ou neutre si None), de façon idempotente."""
        if kind is not None:
            self._ensure_reaction_kind(kind)
        self._ensure_video_exists(video_id)

        # retrait d'abord : l'index unique n'admet qu'une réaction par (user, vidéo)
        for candidate in (InteractionType.like, InteractionType.dislike):
            if candidate == kind:
                continue
            row = self.interactions.get_user_reaction(user_id, video_id, candidate)
            if row is not None:
                self.interactions.delete(row, commit=False)

        if kind is not None and self.interactions.get_user_reaction(user_id, video_id, kind) is None:
            try:
                self.interactions.create(commit=False, video_id=video_id, user_id=user_id, type=kind.value)
            except IntegrityError:
                self.interactions.rollback()
                logger.warning("Concurrent %s on video %s by user %s", kind.value, video_id, user_id)
                return self._reaction_state(user_id, video_id)

        self._commit_reaction_change(user_id, video_id)
        return self._reaction_state(user_id, video_id)

    # --------------- Vues ---------------
    def record_view(self, *, user_id: int, video_id: int) -> ViewOut:
        """Ajoute un événement `view` (jamais dédoublonné) et retourne le total."""
        self._ensure_video_exists(video_id)
        self.interactions.create(video_id=video_id, user_id=user_id, type=InteractionType.view.value)
        views = self.interactions.count_for_video(video_id, InteractionType.view)
        logger.debug("View recorded on video %s, total=%s", video_id, views)
        return ViewOut(video_id=video_id, views=views)

    # --------------- Favoris ---------------
    def save_video(self, *, user_id: int, video_id: int) -> SaveStateOut:
        self._ensure_video_exists(video_id)
        if self.saved.get_by_user_and_video(user_id, video_id):
            raise ConflictError("Video already saved")
        try:
            self.saved.create(video_id=video_id, user_id=user_id)
        except IntegrityError:
            self.saved.rollback()
            raise ConflictError("Video already saved")
        return SaveStateOut(video_id=video_id, saved=True)

    def unsave_video(self, *, user_id: int, video_id: int) -> SaveStateOut:
        saved = self.saved.get_by_user_and_video(user_id, video_id)
        if not saved:
            raise NotFoundError("Video not found in saved list")
        self.saved.delete(saved)
        return SaveStateOut(video_id=video_id, saved=False)

    def is_saved(self, *, user_id: int, video_id: int) -> bool:
        return self.saved.get_by_user_and_video(user_id, video_id) is not None
