import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("CLEANUP_ON_STARTUP", "false")

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, func, select

from streamsurf.api.v1.dependencies import get_email_sender, get_media_storage, get_otp_store
from streamsurf.core.config import jwt_settings
from streamsurf.core.errors import UpstreamError
from streamsurf.db.models.interactions import VideoInteraction
from streamsurf.db.models.users import User
from streamsurf.db.models.videos import Video, VideoTag
from streamsurf.db.session import enable_sqlite_foreign_keys, get_session, init_db
from streamsurf.main import app
from streamsurf.security.password import hash_password
from streamsurf.security.tokens import create_access_token
from streamsurf.utils.kv_store import InMemoryKeyValueStore


class FakeStorage:
    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.fail_upload = False
        self.fail_delete = False

    def upload(self, raw: bytes, *, key: str, mime: str, sha256: Optional[str] = None) -> str:
        if self.fail_upload:
            raise UpstreamError("Error uploading media to storage")
        self.objects[key] = raw
        return f"http://media.test/media/{key}"

    def delete(self, key: str) -> None:
        if self.fail_delete:
            raise UpstreamError("Error deleting media from storage")
        self.objects.pop(key, None)

    def delete_quietly(self, key: Optional[str]) -> bool:
        if not key:
            return True
        try:
            self.delete(key)
        except UpstreamError:
            return False
        return True


class FakeEmailSender:
    def __init__(self):
        self.sent: List[dict] = []
        self.fail = False

    def send_otp(self, *, email: str, otp: str, username: str) -> None:
        if self.fail:
            raise UpstreamError("Failed to send email. Please try again.")
        self.sent.append({"email": email, "otp": otp, "username": username})


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# -----------------------------
# DB
# -----------------------------
@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


# -----------------------------
# App + overrides
# -----------------------------
@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def clock():
    return Clock(datetime(2025, 1, 1, 12, 0, 0))


@pytest.fixture
def otp_store(clock):
    return InMemoryKeyValueStore(now_fn=clock)


@pytest.fixture
def client(engine, storage, email_sender, otp_store):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_media_storage] = lambda: storage
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_otp_store] = lambda: otp_store
    yield TestClient(app)
    app.dependency_overrides.clear()


# -----------------------------
# Factories
# -----------------------------
@pytest.fixture
def make_user(session):
    def _make(
        username: str = "alice",
        *,
        email: Optional[str] = None,
        password: str = "secret123",
        role: str = "user",
        is_active: bool = True,
    ) -> User:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            hashed_password=hash_password(password),
            role=role,
            is_active=is_active,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_video(session):
    counter = {"n": 0}

    def _make(
        title: Optional[str] = None,
        *,
        description: str = "A video",
        tags: Sequence[str] = (),
        category: str = "Other",
        is_published: bool = True,
        duration: int = 60,
        created_at: Optional[datetime] = None,
        storage_key: Optional[str] = None,
    ) -> Video:
        counter["n"] += 1
        video = Video(
            title=title or f"Video {counter['n']}",
            description=description,
            video_url=f"http://media.test/media/videos/{counter['n']}.mp4",
            thumbnail_url="http://media.test/thumb.jpg",
            storage_key=storage_key,
            duration=duration,
            category=category,
            is_published=is_published,
        )
        if created_at is not None:
            video.created_at = created_at
        session.add(video)
        session.flush()
        session.add_all([VideoTag(video_id=video.id, tag=t) for t in tags])
        session.commit()
        session.refresh(video)
        return video

    return _make


@pytest.fixture
def add_interaction(session):
    def _add(video_id: int, user_id: int, kind: str, *, created_at: Optional[datetime] = None) -> VideoInteraction:
        row = VideoInteraction(video_id=video_id, user_id=user_id, type=kind)
        if created_at is not None:
            row.created_at = created_at
        session.add(row)
        session.commit()
        session.refresh(row)
        return row

    return _add


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token(user_id=user.id, settings=jwt_settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def count_rows(engine):
    """Comptage sur une session neuve (pas de cache d'identité)."""

    def _count(model, *conditions) -> int:
        with Session(engine) as fresh:
            stmt = select(func.count()).select_from(model)
            if conditions:
                stmt = stmt.where(*conditions)
            return int(fresh.exec(stmt).one())

    return _count
