from pathlib import Path
from typing import Any, Dict, List

import yaml
from sqlmodel import Session, select

from streamsurf.db.models.users import User, UserRole
from streamsurf.db.models.videos import Video, VideoCategory, VideoTag
from streamsurf.security.password import hash_password

DEFAULT_SEED_PATH = Path(__file__).with_name("seed_data.yaml")


# -----------------------------
# YAML loader
# -----------------------------
def load_seed_yaml(seed_path: str | Path) -> Dict[str, Any]:
    path = Path(seed_path)
    if not path.exists():
        raise FileNotFoundError(f"Seed YAML introuvable: {path}")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Le YAML de seed doit contenir un objet racine (mapping).")
    return data


# -----------------------------
# Seed Users
# -----------------------------
def seed_users(session: Session, data: Dict[str, Any]) -> int:
    users: List[Dict[str, Any]] = data.get("users", [])
    if not users:
        print("⚠️ Aucun utilisateur dans le YAML (clé 'users').")
        return 0

    inserted = 0
    for u in users:
        email = u["email"].lower()
        if session.exec(select(User).where(User.email == email)).first():
            continue
        session.add(
            User(
                username=u["username"].lower(),
                email=email,
                hashed_password=hash_password(u["password"]),
                role=u.get("role", UserRole.user.value),
                mode=u.get("mode", "private"),
            )
        )
        inserted += 1
    session.commit()
    print(f"✅ {inserted} utilisateurs insérés.")
    return inserted


# -----------------------------
# Seed Videos (+ tags)
# -----------------------------
def seed_videos(session: Session, data: Dict[str, Any]) -> int:
    if session.exec(select(Video)).first():
        print("ℹ️ Les vidéos existent déjà, aucune insertion effectuée.")
        return 0

    videos: List[Dict[str, Any]] = data.get("videos", [])
    if not videos:
        print("ℹ️ Aucune vidéo dans le YAML (clé 'videos'), aucune insertion effectuée.")
        return 0

    allowed = {c.value for c in VideoCategory}
    for v in videos:
        category = v.get("category", VideoCategory.other.value)
        if category not in allowed:
            raise ValueError(f"Catégorie inconnue '{category}' pour la vidéo '{v.get('title')}'.")

        video = Video(
            title=v["title"],
            description=v["description"],
            video_url=v["video_url"],
            thumbnail_url=v["thumbnail_url"],
            duration=int(v.get("duration", 0)),
            category=category,
            is_published=bool(v.get("is_published", True)),
            uploaded_by=v.get("uploaded_by", "Admin"),
        )
        session.add(video)
        session.flush()

        tags = {str(t).strip().lower() for t in v.get("tags", []) if str(t).strip()}
        session.add_all([VideoTag(video_id=video.id, tag=tag) for tag in sorted(tags)])

    session.commit()
    print(f"✅ {len(videos)} vidéos insérées.")
    return len(videos)


# -----------------------------
# Main entrypoint
# -----------------------------
def seed_all(session: Session, seed_path: str | Path = DEFAULT_SEED_PATH) -> None:
    data = load_seed_yaml(seed_path)
    seed_users(session, data)
    seed_videos(session, data)
