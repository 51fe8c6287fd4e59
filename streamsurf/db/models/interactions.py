from enum import Enum

from sqlmodel import Field
from sqlalchemy import Column, ForeignKey, Index, Integer, String, UniqueConstraint, text

from .base import BaseModelDB


class InteractionType(str, Enum):
    view = "view"
    like = "like"
    dislike = "dislike"


REACTION_TYPES = (InteractionType.like.value, InteractionType.dislike.value)

_REACTION_ONLY = text("type IN ('like', 'dislike')")


class VideoInteraction(BaseModelDB, table=True):
    """Journal des interactions (vue / like / dislike) d'un user sur une vidéo.

    - `view` : une ligne par visionnage, jamais dédoublonnée.
    - `like` / `dislike` : au plus UNE réaction par (user, vidéo), garanti par un index unique partiel
      (un like et un dislike simultanés sont donc impossibles, même en concurrence).
    """

    __tablename__ = "video_interaction"
    __table_args__ = (
        Index(
            "uq_video_interaction_reaction",
            "video_id",
            "user_id",
            unique=True,
            sqlite_where=_REACTION_ONLY,
            postgresql_where=_REACTION_ONLY,
        ),
        Index("ix_video_interaction_video_type", "video_id", "type"),
    )

    video_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("video.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("user.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    type: str = Field(sa_column=Column(String(16), nullable=False, index=True))


class SavedVideo(BaseModelDB, table=True):
    """Favoris : un user ↔ une vidéo, unique par couple."""

    __tablename__ = "saved_video"
    __table_args__ = (
        UniqueConstraint("video_id", "user_id", name="uq_saved_video_video_user"),
    )

    video_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("video.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("user.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
