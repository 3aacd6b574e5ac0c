import json

import pytest
from fastapi.testclient import TestClient

import server.app as app_module
from server.store import DiagramStore

CODE = "sequenceDiagram\n    participant Client\n    Client->>API: hello\n    API-->>Client: hi"


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(app_module, "store", DiagramStore(tmp_path / "diagrams.json"))
    return TestClient(app_module.app)


class TestConvertAndParse:

    def test_convert(self, client):
        resp = client.post("/api/convert", json={"code": "A -> B : hi"})
        assert resp.status_code == 200
        assert resp.json() == {"mermaid": "sequenceDiagram\n    A->>B: hi"}

    def test_convert_strict_error(self, client):
        resp = client.post("/api/convert", json={"code": "what is this", "strict": True})
        assert resp.status_code == 400
        assert "Unrecognized diagram syntax" in resp.json()["detail"]

    def test_convert_requires_code(self, client):
        assert client.post("/api/convert", json={}).status_code == 400

    def test_body_must_be_json(self, client):
        resp = client.post("/api/convert", content=b"nope", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400

    def test_parse(self, client):
        resp = client.post("/api/parse", json={"code": CODE, "customTooltips": {"msg-1": "reply"}})
        assert resp.status_code == 200
        body = resp.json()
        assert [p["name"] for p in body["participants"]] == ["Client", "API"]
        assert [m["isResponse"] for m in body["messages"]] == [False, True]
        assert body["steps"][0]["description"] == "Client sends to API: hello"
        assert body["steps"][1]["description"] == "reply"

    def test_parse_plantuml(self, client):
        resp = client.post("/api/parse", json={"code": "A -> B : go", "syntaxMode": "plantuml"})
        assert resp.json()["mermaid"] == "sequenceDiagram\n    A->>B: go"
        assert resp.json()["messages"][0]["to"] == "B"

    def test_parse_unknown_syntax(self, client):
        resp = client.post("/api/parse", json={"code": CODE, "syntaxMode": "dot"})
        assert resp.status_code == 400


def test_themes(client):
    body = client.get("/api/themes").json()
    assert body["default"]["primary"] == "#0ea5e9"
    assert len(body["presets"]) == 7
    assert all(p["init"].startswith("%%{init: ") for p in body["presets"])


class TestShare:

    def test_share_and_load(self, client):
        resp = client.post("/api/share", json={
            "code": CODE,
            "syntaxMode": "mermaid",
            "customTooltips": {"msg-0": "greeting"},
            "baseUrl": "https://styler.test/",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["url"] == "https://styler.test/?d=" + body["token"]
        assert body["tooLong"] is False

        loaded = client.get(f"/api/share/{body['token']}").json()
        assert loaded["code"] == CODE
        assert loaded["customTooltips"] == {"msg-0": "greeting"}

    def test_bad_token(self, client):
        resp = client.get("/api/share/e~~~")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "no data"

    def test_share_requires_code(self, client):
        resp = client.post("/api/share", json={"syntaxMode": "mermaid"})
        assert resp.status_code == 400
        assert "missing code" in resp.json()["detail"]


class TestExportImport:

    def test_export(self, client):
        resp = client.post("/api/export", json={"code": CODE, "name": "My Diagram!"})
        assert resp.status_code == 200
        assert 'filename="my-diagram-.json"' in resp.headers["content-disposition"]
        body = resp.json()
        assert body["name"] == "My Diagram!"
        assert body["version"] == "1.0"

    def test_import_round_trip(self, client):
        exported = client.post("/api/export", json={"code": CODE}).json()
        resp = client.post("/api/import", content=json.dumps(exported).encode("utf-8"))
        assert resp.status_code == 200
        assert resp.json()["code"] == CODE

    def test_import_invalid(self, client):
        resp = client.post("/api/import", content=b"{broken")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid JSON file"


class TestDiagrams:

    def test_crud(self, client):
        resp = client.post("/api/diagrams", json={"name": "Login Flow", "code": CODE})
        assert resp.status_code == 201
        assert resp.json()["id"] == "login-flow"

        listing = client.get("/api/diagrams").json()
        assert [d["id"] for d in listing] == ["login-flow"]

        config = client.get("/api/diagrams/login-flow").json()
        assert config["code"] == CODE
        assert config["name"] == "Login Flow"

        assert client.delete("/api/diagrams/login-flow").json() == {"removed": "login-flow"}
        assert client.get("/api/diagrams/login-flow").status_code == 404
        assert client.delete("/api/diagrams/login-flow").status_code == 404

    def test_reset(self, client):
        client.post("/api/diagrams", json={"name": "One", "code": CODE})
        client.post("/api/diagrams", json={"name": "Two", "code": CODE})
        assert client.delete("/api/diagrams").json() == {"removed": 2}
        assert client.get("/api/diagrams").json() == []

    def test_invalid_record(self, client):
        assert client.post("/api/diagrams", json={"name": "x"}).status_code == 400


def test_unreadable_saved_diagram_is_not_found(tmp_path, monkeypatch):
    path = tmp_path / "diagrams.json"
    path.write_text(json.dumps({"broken": {"name": "Broken"}}), encoding="utf-8")
    monkeypatch.setattr(app_module, "store", DiagramStore(path))
    resp = TestClient(app_module.app).get("/api/diagrams/broken")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Diagram not found"
