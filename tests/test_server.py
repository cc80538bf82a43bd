import json

import pytest
import yaml
from fastapi.testclient import TestClient

from conftest import load_resource
from trackhook.config import AppConfig
from trackhook.server import create_app


class StubService:
    def __init__(self, accept=True):
        self.accept = accept
        self.started = False
        self.stopped = False
        self.hooks = []

    def start(self):
        self.started = True

    async def stop(self):
        self.stopped = True

    async def dispatch(self, hook):
        self.hooks.append(hook)
        return self.accept


@pytest.fixture
def cfg(monkeypatch, tmp_path, sample_config_data):
    monkeypatch.setenv("TRACKHOOK_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("GITLAB_WEBHOOK_SECRET", "s3cret")
    return AppConfig.from_dict(sample_config_data)


@pytest.fixture
def service():
    return StubService()


@pytest.fixture
def client(cfg, service):
    with TestClient(create_app(cfg, service)) as test_client:
        yield test_client


def post(client, payload, token="s3cret", event="Merge Request Hook"):
    headers = {"X-Gitlab-Event": event}
    if token is not None:
        headers["X-Gitlab-Token"] = token
    body = payload if isinstance(payload, (bytes, str)) else json.dumps(payload)
    return client.post("/webhook/gitlab", content=body, headers=headers)


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_service_lifecycle(cfg, service):
    with TestClient(create_app(cfg, service)):
        assert service.started
    assert service.stopped


def test_valid_hook_is_dispatched(client, service):
    response = post(client, load_resource("merge_request_merged.json"))

    assert response.status_code == 200
    assert response.json() == {"status": "queued", "object_kind": "merge_request"}
    (hook,) = service.hooks
    assert hook.object_attributes.action == "merge"


def test_ignored_hook(cfg):
    service = StubService(accept=False)
    with TestClient(create_app(cfg, service)) as test_client:
        response = post(test_client, load_resource("pipeline_failed.json"), event="Pipeline Hook")
    assert response.json()["status"] == "ignored"


def test_missing_token(client, service):
    response = post(client, load_resource("merge_request_merged.json"), token=None)
    assert response.status_code == 401
    assert service.hooks == []


def test_wrong_token(client, service):
    response = post(client, load_resource("merge_request_merged.json"), token="guess")
    assert response.status_code == 401
    assert service.hooks == []


def test_invalid_json(client):
    assert post(client, b"{not json").status_code == 400


def test_unsupported_object_kind(client):
    assert post(client, {"object_kind": "push"}).status_code == 400


def test_invalid_payload(client):
    assert post(client, {"object_kind": "pipeline", "object_attributes": {}}).status_code == 400


def test_secret_not_configured(monkeypatch, tmp_path, sample_config_data, service):
    monkeypatch.setenv("TRACKHOOK_LOG_DIR", str(tmp_path))
    monkeypatch.delenv("GITLAB_WEBHOOK_SECRET", raising=False)
    cfg = AppConfig.from_dict(sample_config_data)

    with TestClient(create_app(cfg, service)) as test_client:
        response = post(test_client, load_resource("merge_request_merged.json"))
    assert response.status_code == 500


def test_invalid_configuration_aborts_startup(monkeypatch, tmp_path):
    config_file = tmp_path / "config.yml"
    config_file.write_text(
        "jira: {url: u, user_id: u}\noperations:\n  broken:\n    type: Unknown\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("TRACKHOOK_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("TRACKHOOK_CONFIG", str(config_file))

    with pytest.raises(Exception):
        with TestClient(create_app()):
            pass


def test_endpoint_from_config_file_is_mounted_at_startup(monkeypatch, tmp_path, sample_config_data, service):
    sample_config_data["webhook"] = {"endpoint": "/hooks/gitlab"}
    config_file = tmp_path / "config.yml"
    config_file.write_text(yaml.safe_dump(sample_config_data), encoding="utf-8")
    monkeypatch.setenv("TRACKHOOK_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("TRACKHOOK_CONFIG", str(config_file))
    monkeypatch.setenv("GITLAB_WEBHOOK_SECRET", "s3cret")

    with TestClient(create_app(service=service)) as test_client:
        payload = json.dumps(load_resource("merge_request_merged.json"))
        headers = {"X-Gitlab-Token": "s3cret", "X-Gitlab-Event": "Merge Request Hook"}
        assert test_client.post("/hooks/gitlab", content=payload, headers=headers).status_code == 200
        assert test_client.post("/webhook/gitlab", content=payload, headers=headers).status_code == 404
    assert len(service.hooks) == 1


def test_configured_endpoint(monkeypatch, tmp_path, sample_config_data, service):
    monkeypatch.setenv("TRACKHOOK_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("GITLAB_WEBHOOK_SECRET", "s3cret")
    sample_config_data["webhook"] = {"endpoint": "/custom"}
    cfg = AppConfig.from_dict(sample_config_data)

    with TestClient(create_app(cfg, service)) as test_client:
        response = post(test_client, {"object_kind": "push"}, event="Push Hook")
        assert response.status_code == 404
        assert test_client.post("/custom", content=b"{}", headers={"X-Gitlab-Token": "s3cret"}).status_code == 400
