import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from streamsurf.core.errors import ConflictError, NotFoundError
from streamsurf.db.models.interactions import InteractionType, SavedVideo, VideoInteraction
from streamsurf.db.repositories.interactions import InteractionRepository, SavedVideoRepository
from streamsurf.db.repositories.videos import VideoRepository
from streamsurf.features.interactions.services import InteractionService


@pytest.fixture
def svc(session):
    return InteractionService(
        video_repo=VideoRepository(session),
        interaction_repo=InteractionRepository(session),
        saved_repo=SavedVideoRepository(session),
    )


# -----------------------------
# Agrégation
# -----------------------------
def test_aggregates_zero_filled_for_unknown_and_untouched_videos(svc, make_video):
    video = make_video()
    result = svc.get_aggregates([video.id, 9999])

    assert set(result) == {video.id, 9999}
    for agg in result.values():
        assert (agg.likes, agg.dislikes, agg.views) == (0, 0, 0)
        assert agg.user_interaction.like is False
        assert agg.user_interaction.dislike is False


def test_aggregates_count_each_type_and_user_flags(svc, make_user, make_video, add_interaction):
    alice = make_user("alice")
    bob = make_user("bob")
    video = make_video()
    add_interaction(video.id, alice.id, "like")
    add_interaction(video.id, bob.id, "dislike")
    add_interaction(video.id, alice.id, "view")
    add_interaction(video.id, alice.id, "view")
    add_interaction(video.id, bob.id, "view")

    agg = svc.get_aggregates([video.id], user_id=alice.id)[video.id]
    assert (agg.likes, agg.dislikes, agg.views) == (1, 1, 3)
    assert agg.user_interaction.like is True
    assert agg.user_interaction.dislike is False

    anonymous = svc.get_aggregates([video.id])[video.id]
    assert anonymous.user_interaction.like is False


# -----------------------------
# Réactions
# -----------------------------
def test_like_then_dislike_swaps_reaction(svc, make_user, make_video):
    user = make_user()
    video = make_video()

    liked = svc.toggle_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.like)
    assert (liked.likes, liked.dislikes, liked.user_liked) == (1, 0, True)

    swapped = svc.toggle_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.dislike)
    assert swapped.user_liked is False
    assert swapped.user_disliked is True
    assert swapped.dislikes == 1
    assert swapped.likes == 0


def test_like_swap_keeps_other_users_likes(svc, make_user, make_video, add_interaction):
    alice = make_user("alice")
    bob = make_user("bob")
    video = make_video()
    add_interaction(video.id, bob.id, "like")

    svc.toggle_reaction(user_id=alice.id, video_id=video.id, kind=InteractionType.like)
    state = svc.toggle_reaction(user_id=alice.id, video_id=video.id, kind=InteractionType.dislike)

    assert state.likes == 1  # celui de bob
    assert state.dislikes == 1


def test_like_twice_returns_to_neutral(svc, make_user, make_video):
    user = make_user()
    video = make_video()
    before = svc.get_aggregates([video.id])[video.id].likes

    svc.toggle_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.like)
    state = svc.toggle_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.like)

    assert state.likes == before
    assert state.user_liked is False
    assert state.user_disliked is False


def test_set_reaction_is_idempotent(svc, make_user, make_video):
    user = make_user()
    video = make_video()

    first = svc.set_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.dislike)
    second = svc.set_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.dislike)
    assert first == second
    assert second.dislikes == 1 and second.user_disliked is True

    liked = svc.set_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.like)
    assert (liked.likes, liked.dislikes) == (1, 0)

    cleared = svc.set_reaction(user_id=user.id, video_id=video.id, kind=None)
    assert (cleared.likes, cleared.dislikes, cleared.user_liked, cleared.user_disliked) == (0, 0, False, False)


def test_reaction_on_missing_video_is_not_found(svc, make_user):
    user = make_user()
    with pytest.raises(NotFoundError):
        svc.toggle_reaction(user_id=user.id, video_id=404, kind=InteractionType.like)


def test_unique_index_rejects_duplicate_like_but_not_views(engine, make_user, make_video):
    user = make_user()
    video = make_video()

    with Session(engine) as s:
        s.add(VideoInteraction(video_id=video.id, user_id=user.id, type="view"))
        s.add(VideoInteraction(video_id=video.id, user_id=user.id, type="view"))
        s.add(VideoInteraction(video_id=video.id, user_id=user.id, type="like"))
        s.commit()

    with Session(engine) as s:
        s.add(VideoInteraction(video_id=video.id, user_id=user.id, type="like"))
        with pytest.raises(IntegrityError):
            s.commit()


def test_unique_index_rejects_like_and_dislike_together(engine, make_user, make_video):
    user = make_user()
    video = make_video()

    with Session(engine) as s:
        s.add(VideoInteraction(video_id=video.id, user_id=user.id, type="like"))
        s.commit()

    with Session(engine) as s:
        s.add(VideoInteraction(video_id=video.id, user_id=user.id, type="dislike"))
        with pytest.raises(IntegrityError):
            s.commit()


# -----------------------------
# Requêtes concurrentes (lecture périmée rejouée)
# -----------------------------
def _stale_reads(monkeypatch, svc):
    """La requête a lu « aucune réaction » avant le commit d'une requête concurrente."""
    monkeypatch.setattr(svc.interactions, "get_user_reaction", lambda *args, **kwargs: None)


def test_concurrent_toggle_never_leaves_like_and_dislike(svc, make_user, make_video, add_interaction, monkeypatch):
    user = make_user()
    video = make_video()
    add_interaction(video.id, user.id, "like")
    _stale_reads(monkeypatch, svc)

    state = svc.toggle_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.dislike)

    assert (state.likes, state.dislikes) == (1, 0)
    assert (state.user_liked, state.user_disliked) == (True, False)
    agg = svc.get_aggregates([video.id], user_id=user.id)[video.id]
    assert not (agg.user_interaction.like and agg.user_interaction.dislike)


def test_concurrent_duplicate_like_is_absorbed(svc, make_user, make_video, add_interaction, count_rows, monkeypatch):
    user = make_user()
    video = make_video()
    add_interaction(video.id, user.id, "like")
    _stale_reads(monkeypatch, svc)

    state = svc.toggle_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.like)

    assert (state.likes, state.user_liked) == (1, True)
    assert count_rows(VideoInteraction, VideoInteraction.type == "like") == 1


def test_concurrent_set_reaction_keeps_single_reaction(svc, make_user, make_video, add_interaction, monkeypatch):
    user = make_user()
    video = make_video()
    add_interaction(video.id, user.id, "like")
    _stale_reads(monkeypatch, svc)

    state = svc.set_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.dislike)

    assert (state.likes, state.dislikes) == (1, 0)


def test_commit_conflict_is_rolled_back(svc, make_user, make_video, count_rows, monkeypatch):
    user = make_user()
    video = make_video()

    def _conflict():
        raise IntegrityError("INSERT INTO video_interaction", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(svc.interactions, "commit", _conflict)

    state = svc.toggle_reaction(user_id=user.id, video_id=video.id, kind=InteractionType.like)

    assert (state.likes, state.user_liked) == (0, False)
    assert count_rows(VideoInteraction) == 0


def test_concurrent_save_is_a_conflict(svc, make_user, make_video, count_rows, monkeypatch):
    user = make_user()
    video = make_video()
    svc.save_video(user_id=user.id, video_id=video.id)
    monkeypatch.setattr(svc.saved, "get_by_user_and_video", lambda *args, **kwargs: None)

    with pytest.raises(ConflictError):
        svc.save_video(user_id=user.id, video_id=video.id)
    assert count_rows(SavedVideo) == 1


# -----------------------------
# Vues
# -----------------------------
def test_record_view_counts_every_call(svc, make_user, make_video):
    user = make_user()
    video = make_video()

    for expected in range(1, 6):
        out = svc.record_view(user_id=user.id, video_id=video.id)
        assert out.views == expected

    assert svc.get_aggregates([video.id])[video.id].views == 5


# -----------------------------
# Favoris
# -----------------------------
def test_save_twice_conflicts(svc, make_user, make_video):
    user = make_user()
    video = make_video()

    assert svc.save_video(user_id=user.id, video_id=video.id).saved is True
    with pytest.raises(ConflictError):
        svc.save_video(user_id=user.id, video_id=video.id)
    assert svc.is_saved(user_id=user.id, video_id=video.id) is True


def test_unsave_never_saved_is_not_found(svc, make_user, make_video):
    user = make_user()
    video = make_video()
    with pytest.raises(NotFoundError):
        svc.unsave_video(user_id=user.id, video_id=video.id)


def test_unsave_removes_saved_entry(svc, make_user, make_video, count_rows):
    user = make_user()
    video = make_video()
    svc.save_video(user_id=user.id, video_id=video.id)

    out = svc.unsave_video(user_id=user.id, video_id=video.id)

    assert out.saved is False
    assert count_rows(SavedVideo) == 0


# -----------------------------
# Via HTTP
# -----------------------------
def test_like_endpoints_return_recomputed_counts(client, make_user, make_video, auth_headers):
    user = make_user()
    video = make_video()
    headers = auth_headers(user)

    r = client.post(f"/api/v1/videos/{video.id}/like", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"] == {
        "video_id": video.id, "likes": 1, "dislikes": 0, "user_liked": True, "user_disliked": False,
    }

    r = client.post(f"/api/v1/videos/{video.id}/dislike", headers=headers)
    assert r.json()["data"]["user_liked"] is False
    assert r.json()["data"]["dislikes"] == 1

    r = client.put(f"/api/v1/videos/{video.id}/reaction", json={"reaction": None}, headers=headers)
    assert r.json()["data"]["dislikes"] == 0


def test_view_and_save_endpoints(client, make_user, make_video, auth_headers):
    user = make_user()
    video = make_video()
    headers = auth_headers(user)

    for _ in range(3):
        r = client.post(f"/api/v1/videos/{video.id}/view", headers=headers)
    assert r.json()["data"]["views"] == 3

    assert client.post(f"/api/v1/videos/{video.id}/save", headers=headers).status_code == 200
    r = client.post(f"/api/v1/videos/{video.id}/save", headers=headers)
    assert r.status_code == 409
    assert r.json() == {"success": False, "message": "Video already saved"}

    r = client.get(f"/api/v1/videos/{video.id}/is-saved", headers=headers)
    assert r.json()["data"]["is_saved"] is True

    assert client.delete(f"/api/v1/videos/{video.id}/unsave", headers=headers).status_code == 200
    assert client.delete(f"/api/v1/videos/{video.id}/unsave", headers=headers).status_code == 404


def test_interactions_require_authentication(client, make_video):
    video = make_video()
    r = client.post(f"/api/v1/videos/{video.id}/like")
    assert r.status_code == 401
    assert r.json()["success"] is False
