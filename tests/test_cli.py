from __future__ import annotations

import json
import pathlib
import sys
from typing import Any, Iterable

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
PROVIDER_PATH = ROOT / "src" / "provider"
if str(PROVIDER_PATH) not in sys.path:
    sys.path.insert(0, str(PROVIDER_PATH))

from secretsmanager_provider import cli
from secretsmanager_provider.core.errors import DecryptionError
from secretsmanager_provider.providers.base import ConfigData


class FakeProvider:
    instances: list["FakeProvider"] = []
    error: Exception | None = None

    def __init__(self) -> None:
        self.configs: dict[str, Any] | None = None
        self.requests: list[tuple[str, list[str]]] = []
        self.closed = False
        self.caller_identity: dict[str, str] | None = None
        self.whoami_calls = 0
        FakeProvider.instances.append(self)

    def configure(self, configs: dict[str, Any]) -> None:
        self.configs = configs

    def get(self, path: str, keys: Iterable[str] | None = None) -> ConfigData:
        self.requests.append((path, list(keys or [])))
        if FakeProvider.error is not None:
            raise FakeProvider.error
        return ConfigData(data={"password": "s3cr3tvalue"}, ttl=60000)

    def whoami(self) -> dict[str, str]:
        self.whoami_calls += 1
        return {"arn": "arn:aws:iam::123456789012:user/cli", "account": "123456789012"}

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def fake_provider(monkeypatch: pytest.MonkeyPatch) -> type[FakeProvider]:
    FakeProvider.instances = []
    FakeProvider.error = None
    monkeypatch.setattr(cli, "AwsSecretsManagerProvider", FakeProvider)
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    return FakeProvider


def test_resolve_masks_values(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["--region", "us-east-1", "--ttl-ms", "60000", "resolve", "db/creds", "password"])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output == {"path": "db/creds", "ttl": 60000, "data": {"password": "s3cr*******"}}

    provider = FakeProvider.instances[0]
    assert provider.configs == {
        "cloud.region": "us-east-1",
        "cloud.access.key": "",
        "cloud.access.secret": "",
        "cloud.secret.format": "legacy",
        "cloud.secret.ttl.ms": 60000,
    }
    assert provider.requests == [("db/creds", ["password"])]
    assert provider.closed is True


def test_resolve_reveal_prints_values(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli.main(["--region", "us-east-1", "resolve", "db/creds", "--reveal"])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out)["data"] == {"password": "s3cr3tvalue"}


def test_whoami(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["--region", "us-east-1", "whoami"]) == 0
    assert json.loads(capsys.readouterr().out) == {
        "arn": "arn:aws:iam::123456789012:user/cli",
        "account": "123456789012",
    }


def test_provider_errors_exit_non_zero(capsys: pytest.CaptureFixture[str]) -> None:
    FakeProvider.error = DecryptionError("unable to decrypt secret 'db/creds'", path="db/creds")

    exit_code = cli.main(["--region", "us-east-1", "resolve", "db/creds"])

    assert exit_code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "error (decryption): unable to decrypt secret 'db/creds'" in captured.err
    assert FakeProvider.instances[0].closed is True


def test_whoami_reuses_identity_from_configure(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    identity = {"arn": "arn:aws:iam::123456789012:role/worker", "account": "123456789012"}

    def configure(self: FakeProvider, configs: dict[str, Any]) -> None:
        self.configs = configs
        self.caller_identity = identity

    monkeypatch.setattr(FakeProvider, "configure", configure)

    assert cli.main(["--region", "us-east-1", "whoami"]) == 0
    assert json.loads(capsys.readouterr().out) == identity
    assert FakeProvider.instances[0].whoami_calls == 0
