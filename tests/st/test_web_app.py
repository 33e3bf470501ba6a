"""Web API 端点测试"""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import FakeGitClient, FakeRegistry

from pkgfetch.web.app import app

GIT_SPEC = "mylib@git+https://example.com/org/mylib#dev"


@pytest.fixture()
def container(config, make_acquirer, monkeypatch: pytest.MonkeyPatch):
    """全局容器指向临时目录，acquirer 换成 fake 客户端版本"""
    import pkgfetch.core.config as cfgmod
    from pkgfetch.services.container import get_container, reset_container

    monkeypatch.setattr(cfgmod, "_current", config)
    reset_container()
    c = get_container()
    c._instances["acquirer"] = make_acquirer()
    yield c
    reset_container()


@pytest.fixture()
def client(container):
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


class TestGlobalErrorHandlers:
    def test_404_returns_json(self, client) -> None:
        resp = client.get("/api/nonexistent")
        assert resp.status_code == 404
        assert "error" in resp.get_json()

    def test_405_returns_json(self, client) -> None:
        resp = client.delete("/api/packages/parse")
        assert resp.status_code == 405
        assert "error" in resp.get_json()


class TestHealth:
    def test_health(self, client, config) -> None:
        data = client.get("/api/health").get_json()
        assert data["status"] == "ok"
        assert data["packages_dir"] == config.packages_dir


class TestAcquireEndpoint:
    def test_registry(self, client, config) -> None:
        resp = client.post("/api/packages", json={"specifier": "left-pad@^1.0.0"})
        assert resp.status_code == 201
        data = resp.get_json()
        pkg = data["package"]
        assert pkg["name"] == "left-pad"
        assert pkg["version"] == "1.3.0"
        assert Path(pkg["path"]) == Path(config.packages_dir).resolve() / "left-pad" / "1.3.0"
        assert pkg["metadata"]["requested"] == "^1.0.0"
        assert "left-pad@1.3.0" in data["message"]

    def test_git(self, client) -> None:
        resp = client.post("/api/packages", json={"specifier": GIT_SPEC})
        assert resp.status_code == 201
        meta = resp.get_json()["package"]["metadata"]
        assert meta["branch"] == "dev"
        assert meta["git_url"] == "git+https://example.com/org/mylib#dev"

    def test_missing_specifier(self, client) -> None:
        resp = client.post("/api/packages", json={})
        assert resp.status_code == 400

    def test_retrieval_failure_502(self, client, container, make_acquirer) -> None:
        container._instances["acquirer"] = make_acquirer(
            registry_client=FakeRegistry({"foo": {"1.0.0": {}}}, fail_times=100),
            max_retries=1,
        )
        resp = client.post("/api/packages", json={"specifier": "foo"})
        assert resp.status_code == 502
        data = resp.get_json()
        assert data["code"] == "ACQUISITION_FAILED"
        assert "foo@*" in data["error"]

    def test_missing_manifest_422(self, client, container, make_acquirer) -> None:
        container._instances["acquirer"] = make_acquirer(git=FakeGitClient(with_manifest=False))
        resp = client.post("/api/packages", json={"specifier": GIT_SPEC})
        assert resp.status_code == 422

    def test_collision_409(self, client) -> None:
        assert client.post("/api/packages", json={"specifier": "foo@0.1.0"}).status_code == 201
        resp = client.post("/api/packages", json={"specifier": "foo@0.1.0"})
        assert resp.status_code == 409


class TestParseEndpoint:
    def test_registry(self, client) -> None:
        data = client.get(
            "/api/packages/parse", query_string={"specifier": "left-pad@^1.2.3"},
        ).get_json()
        assert data == {
            "name": "left-pad", "version": "^1.2.3",
            "source": "registry", "range": ">=1.2.3 <2.0.0",
        }

    def test_no_version(self, client) -> None:
        data = client.get("/api/packages/parse?specifier=foo").get_json()
        assert data["version"] == "*"
        assert data["range"] == "*"

    def test_git(self, client) -> None:
        data = client.get("/api/packages/parse", query_string={"specifier": GIT_SPEC}).get_json()
        assert data["source"] == "git"
        assert data["url"] == "https://example.com/org/mylib"
        assert data["branch"] == "dev"
        assert "%" in data["dir"]

    def test_missing(self, client) -> None:
        assert client.get("/api/packages/parse").status_code == 400


class TestVersionsEndpoint:
    def test_list(self, client) -> None:
        client.post("/api/packages", json={"specifier": "@scope/pkg"})
        resp = client.get("/api/packages/@scope/pkg")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["name"] == "@scope/pkg"
        assert [v["version"] for v in data["versions"]] == ["1.0.0"]

    def test_not_found(self, client) -> None:
        assert client.get("/api/packages/nothing").status_code == 404

    def test_bad_name(self, client) -> None:
        assert client.get("/api/packages/bad!name").status_code == 400
