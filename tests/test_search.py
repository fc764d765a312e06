def _seed(make_brand):
    make_brand("Levi's", "levis", verified=True)
    make_brand("Lee", "lee", verified=True)
    make_brand("Lemaire", "lemaire")
    make_brand("Leather Co", "leather-co")
    make_brand("Helen", "helen")
    make_brand("Pendleton", "pendleton")
    make_brand("Wrangler", "wrangler", verified=True)


def test_verified_first_then_name(client, make_brand):
    _seed(make_brand)

    rows = client.get("/api/search/brands", params={"q": "le", "limit": 5}).json()
    assert [r["name"] for r in rows] == ["Lee", "Levi's", "Wrangler", "Helen", "Leather Co"]


def test_default_limit_is_five(client, make_brand):
    _seed(make_brand)
    assert len(client.get("/api/search/brands", params={"q": "le"}).json()) == 5


def test_short_query_returns_nothing(client, make_brand):
    _seed(make_brand)
    assert client.get("/api/search/brands", params={"q": "l"}).json() == []
    assert client.get("/api/search/brands", params={"q": "   "}).json() == []
    assert client.get("/api/search/brands").json() == []


def test_case_insensitive(client, make_brand):
    _seed(make_brand)
    assert [r["slug"] for r in client.get("/api/search/brands", params={"q": "WRANG"}).json()] == ["wrangler"]


def test_zero_limit_is_rejected(client):
    assert client.get("/api/search/brands", params={"q": "lee", "limit": 0}).status_code == 422


def test_large_limit_is_capped(client, make_brand):
    for i in range(60):
        make_brand(f"Lee Batch {i:02d}", f"lee-batch-{i:02d}")

    resp = client.get("/api/search/brands", params={"q": "lee", "limit": 100})
    assert resp.status_code == 200
    assert len(resp.json()) == 50
