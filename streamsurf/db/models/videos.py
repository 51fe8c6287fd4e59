from enum import Enum
from typing import Optional

from sqlmodel import Field
from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint

from .base import BaseModelDB


class VideoCategory(str, Enum):
    music = "Music"
    tutorial = "Tutorial"
    gaming = "Gaming"
    vlog = "Vlog"
    documentary = "Documentary"
    other = "Other"


class Video(BaseModelDB, table=True):
    """Vidéos stockées dans S3/MinIO, référencées en DB.

    Pas de compteurs dénormalisés : likes/dislikes/vues sont toujours recalculés
    depuis la table des interactions.
    """

    title: str = Field(max_length=500, description="Titre")
    description: str = Field(max_length=2000, description="Description")
    video_url: str = Field(description="URL publique du média")
    thumbnail_url: str = Field(description="URL publique de la miniature")
    storage_key: Optional[str] = Field(default=None, index=True, description="Clé de l'objet vidéo dans le bucket")
    thumbnail_key: Optional[str] = Field(default=None, description="Clé de la miniature dans le bucket")
    duration: int = Field(default=0, ge=0, description="Durée en secondes")
    category: str = Field(default=VideoCategory.other.value, index=True)
    is_published: bool = Field(default=True, index=True)
    uploaded_by: str = Field(default="Admin", description="Username de l'admin ayant uploadé")


class VideoTag(BaseModelDB, table=True):
    """Tags d'une vidéo (un tag normalisé par ligne)."""

    __tablename__ = "video_tag"
    __table_args__ = (
        UniqueConstraint("video_id", "tag", name="uq_video_tag_video_tag"),
    )

    video_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("video.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    tag: str = Field(sa_column=Column(String(100), nullable=False, index=True))
