from datetime import timedelta

from streamsurf.db.models.base import utcnow


def _titles(response):
    return [v["title"] for v in response.json()["data"]]


def test_tags_filter_requires_every_tag(client, make_video):
    make_video("abc", tags=["a", "b", "c"])
    make_video("only-a", tags=["a"])
    make_video("only-b", tags=["b"])
    make_video("ab", tags=["a", "b"])

    r = client.get("/api/v1/videos", params={"tags": "a,b"})

    assert r.status_code == 200
    assert sorted(_titles(r)) == ["ab", "abc"]
    for video in r.json()["data"]:
        assert {"a", "b"} <= set(video["tags"])


def test_tags_filter_is_case_insensitive(client, make_video):
    make_video("ab", tags=["a", "b"])
    r = client.get("/api/v1/videos", params={"tags": " A , B "})
    assert _titles(r) == ["ab"]


def test_pagination_of_25_videos_by_12(client, make_video):
    for _ in range(25):
        make_video()

    first = client.get("/api/v1/videos", params={"page": 1, "limit": 12}).json()
    assert len(first["data"]) == 12
    assert first["pagination"] == {
        "page": 1, "limit": 12, "total_pages": 3, "total_count": 25, "has_more": True,
    }

    last = client.get("/api/v1/videos", params={"page": 3, "limit": 12}).json()
    assert len(last["data"]) == 1
    assert last["pagination"]["has_more"] is False

    beyond = client.get("/api/v1/videos", params={"page": 4, "limit": 12}).json()
    assert beyond["success"] is True
    assert beyond["data"] == []


def test_default_sort_is_newest_first(client, make_video):
    now = utcnow()
    make_video("old", created_at=now - timedelta(days=2))
    make_video("new", created_at=now)
    make_video("mid", created_at=now - timedelta(days=1))

    assert _titles(client.get("/api/v1/videos")) == ["new", "mid", "old"]


def test_sort_by_title_defaults_to_ascending(client, make_video):
    for title in ["Charlie", "alpha", "Bravo"]:
        make_video(title)

    titles = _titles(client.get("/api/v1/videos", params={"sortBy": "title"}))
    assert titles == sorted(titles)

    desc = _titles(client.get("/api/v1/videos", params={"sortBy": "title", "order": "desc"}))
    assert desc == list(reversed(titles))


def test_sort_by_views_and_likes(client, make_user, make_video, add_interaction):
    user = make_user()
    quiet = make_video("quiet")
    popular = make_video("popular")
    liked = make_video("liked")
    for _ in range(3):
        add_interaction(popular.id, user.id, "view")
    add_interaction(quiet.id, user.id, "view")
    add_interaction(liked.id, user.id, "like")

    assert _titles(client.get("/api/v1/videos", params={"sortBy": "views"}))[:2] == ["popular", "quiet"]
    assert _titles(client.get("/api/v1/videos", params={"sortBy": "likes"}))[0] == "liked"


def test_unknown_sort_is_rejected(client, make_video):
    make_video()
    r = client.get("/api/v1/videos", params={"sortBy": "random"})
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_search_and_category(client, make_video):
    make_video("Guitar lesson", category="Tutorial")
    make_video("Cooking", description="Learn GUITAR chords while cooking", category="Vlog")
    make_video("Speedrun", category="Gaming")

    assert sorted(_titles(client.get("/api/v1/videos", params={"search": "guitar"}))) == ["Cooking", "Guitar lesson"]
    assert _titles(client.get("/api/v1/videos", params={"category": "Gaming"})) == ["Speedrun"]
    assert len(client.get("/api/v1/videos", params={"category": "All"}).json()["data"]) == 3
    assert client.get("/api/v1/videos", params={"category": "Cats"}).status_code == 400


def test_unpublished_videos_hidden_from_public(client, make_user, make_video, auth_headers):
    admin = make_user("root", role="admin")
    hidden = make_video("draft", is_published=False)
    make_video("live")

    assert _titles(client.get("/api/v1/videos")) == ["live"]
    assert client.get(f"/api/v1/videos/{hidden.id}").status_code == 404

    r = client.get(f"/api/v1/videos/{hidden.id}", headers=auth_headers(admin))
    assert r.status_code == 200
    assert r.json()["data"]["title"] == "draft"


def test_video_detail_includes_aggregates_and_user_flags(client, make_user, make_video, add_interaction, auth_headers):
    user = make_user()
    video = make_video(tags=["music"])
    add_interaction(video.id, user.id, "like")
    add_interaction(video.id, user.id, "view")

    anonymous = client.get(f"/api/v1/videos/{video.id}").json()["data"]
    assert (anonymous["likes"], anonymous["views"]) == (1, 1)
    assert anonymous["user_interaction"] == {"like": False, "dislike": False}
    assert anonymous["tags"] == ["music"]

    mine = client.get(f"/api/v1/videos/{video.id}", headers=auth_headers(user)).json()["data"]
    assert mine["user_interaction"] == {"like": True, "dislike": False}


def test_unknown_video_is_not_found(client):
    r = client.get("/api/v1/videos/12345")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Video not found"}


def test_trending_ranks_published_by_views(client, make_user, make_video, add_interaction):
    user = make_user()
    top = make_video("top")
    second = make_video("second")
    draft = make_video("draft", is_published=False)
    make_video("never-viewed")
    for _ in range(3):
        add_interaction(top.id, user.id, "view")
    add_interaction(second.id, user.id, "view")
    for _ in range(5):
        add_interaction(draft.id, user.id, "view")

    r = client.get("/api/v1/videos/trending")

    assert r.status_code == 200
    assert [v["title"] for v in r.json()["data"]] == ["top", "second"]
    assert r.json()["data"][0]["views"] == 3


def test_tags_endpoint_lists_distinct_published_tags(client, make_video):
    make_video(tags=["rock", "live"])
    make_video(tags=["jazz", "live"])
    make_video(tags=["secret"], is_published=False)

    r = client.get("/api/v1/videos/tags")
    assert r.json()["data"] == ["jazz", "live", "rock"]


def test_saved_and_history_lists(client, make_user, make_video, auth_headers):
    user = make_user()
    first = make_video("first")
    second = make_video("second")
    headers = auth_headers(user)

    client.post(f"/api/v1/videos/{first.id}/save", headers=headers)
    client.post(f"/api/v1/videos/{second.id}/view", headers=headers)

    saved = client.get("/api/v1/videos/saved", headers=headers).json()["data"]
    assert [v["title"] for v in saved] == ["first"]
    assert saved[0]["saved_at"] is not None

    history = client.get("/api/v1/videos/history", headers=headers).json()["data"]
    assert [v["title"] for v in history] == ["second"]
    assert history[0]["viewed_at"] is not None

    assert client.get("/api/v1/videos/saved").status_code == 401


def test_search_treats_wildcards_literally(client, make_video):
    make_video("plain one", description="nothing special")
    make_video("50% off", description="sale")
    make_video("snake_case", description="naming")
    make_video("snakeXcase", description="naming")

    assert _titles(client.get("/api/v1/videos", params={"search": "%"})) == ["50% off"]
    assert _titles(client.get("/api/v1/videos", params={"search": "e_c"})) == ["snake_case"]
