def test_healthz(client):
    rv = client.get("/healthz")
    assert rv.status_code == 200
    assert rv.json["ok"] is True
    assert rv.json["database"] == "up"


def test_healthz_needs_no_token(client):
    # every other route is behind auth
    assert client.get("/healthz").status_code == 200
    assert client.get("/api/homework/list").status_code == 401


def test_unknown_route_uses_json_envelope(client):
    rv = client.get("/api/nope")
    assert rv.status_code == 404
    assert rv.json["success"] is False
