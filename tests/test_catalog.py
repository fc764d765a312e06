from threaddate.middleware import MAX_REQUEST_BYTES
from threaddate.models.profile import Profile
from threaddate.models.vote import Vote
from conftest import make_image_b64


def test_era_hub_stats(client, make_user, make_brand, make_tag):
    user = make_user()
    levis = make_brand()
    nike = make_brand("Nike", "nike")
    make_tag(user, levis, era="1980s", origin_country="USA")
    make_tag(user, levis, era="1980s", origin_country="USA", category="Care Tag")
    make_tag(user, nike, era="1980s", origin_country="Korea")
    make_tag(user, nike, era="1970s")

    body = client.get("/eras/1980s").json()
    assert body["era"] == "1980s"
    assert body["tag_count"] == 3
    assert body["brand_count"] == 2
    assert [(b["slug"], b["tag_count"]) for b in body["top_brands"]] == [("levis", 2), ("nike", 1)]
    assert body["categories"] == [{"label": "Neck Tag", "count": 2}, {"label": "Care Tag", "count": 1}]
    assert body["countries"] == [{"label": "USA", "count": 2}, {"label": "Korea", "count": 1}]


def test_era_slug_mapping(client, make_user, make_brand, make_tag):
    make_tag(make_user(), make_brand(), era="2000s (Y2K)")
    assert client.get("/eras/2000s").json()["tag_count"] == 1
    assert client.get("/eras/1985s").status_code == 404


def test_new_tag_refreshes_era_page(client, s3, make_user, make_brand, login):
    brand = make_brand()
    assert client.get("/eras/1960s").json()["tag_count"] == 0

    login(make_user())
    client.post("/tags", json={"brand_id": brand.id, "category": "Zipper", "era": "1960s", "image_base64": make_image_b64()})
    assert client.get("/eras/1960s").json()["tag_count"] == 1


def test_leaderboard(client, db, make_user):
    low = make_user("low@threaddate.app", username="low")
    high = make_user("high@threaddate.app", username="high")
    make_user("anon@threaddate.app")
    db.get(Profile, low.id).reputation_score = 3
    db.get(Profile, high.id).reputation_score = 12
    db.commit()

    rows = client.get("/leaderboard").json()
    assert [r["username"] for r in rows] == ["high", "low"]
    assert client.get("/leaderboard", params={"limit": 1}).json()[0]["reputation_score"] == 12


def test_profile_stats(client, db, make_user, make_brand, make_tag, login):
    user = make_user(username="ana")
    brand = make_brand()
    make_tag(user, brand, status="verified")
    other = make_tag(user, brand)
    db.add(Vote(user_id=user.id, tag_id=other.id, vote_value=1))
    db.commit()

    assert client.get(f"/profiles/{user.id}/stats").json() == {"total_tags": 2, "verified_tags": 1, "votes_cast": 1}

    assert client.get("/profile").status_code == 401
    login(user)
    me = client.get("/profile").json()
    assert me["profile"]["username"] == "ana"
    assert me["stats"]["total_tags"] == 2


def test_unknown_profile(client):
    assert client.get("/profiles/00000000-0000-0000-0000-000000000000/stats").status_code == 404


def test_robots(client):
    text = client.get("/robots.txt").text
    assert "Disallow: /api/" in text
    assert "Disallow: /admin/" in text
    assert "Sitemap: https://threaddate.test/sitemap.xml" in text


def test_sitemap_lists_brands_and_tags(client, make_user, make_brand, make_tag):
    tag = make_tag(make_user(), make_brand())

    resp = client.get("/sitemap.xml")
    assert resp.headers["content-type"].startswith("application/xml")
    assert "<loc>https://threaddate.test/brands/levis</loc>" in resp.text
    assert f"<loc>https://threaddate.test/tags/{tag.id}</loc>" in resp.text
    assert "<loc>https://threaddate.test/how-it-works</loc>" in resp.text
    assert "<loc>https://threaddate.test/eras/2000s</loc>" in resp.text


def test_errors_share_one_shape(client):
    resp = client.get("/no/such/route")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Not Found"}


def test_request_id_header(client):
    resp = client.get("/", headers={"X-Request-ID": "abc123"})
    assert resp.json() == {"status": "ok"}
    assert resp.headers["X-Request-ID"] == "abc123"


def test_oversized_body_rejected(client):
    resp = client.post("/tags", content=b"x" * (MAX_REQUEST_BYTES + 1), headers={"content-type": "application/json"})
    assert resp.status_code == 413
    assert resp.json()["error"] == "Request entity too large"
