import importlib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sift.errors import ApiKeyNotConfiguredError
from sift.remote.base import RemoteServices
from tests.fakes import VENDOR_CSV, FakeRemote, worker

cli_app_module = importlib.import_module("sift.cli.app")


@pytest.fixture
def dataset(tmp_path: Path) -> Path:
    path = tmp_path / "invoices.csv"
    path.write_bytes(VENDOR_CSV)
    return path


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SIFT_DEADLINE_SECONDS", "5")


def _install_remote(monkeypatch, fake: FakeRemote) -> None:
    monkeypatch.setattr(cli_app_module, "build_remote", lambda settings: RemoteServices.from_backend(fake))


def test_analyze_prints_each_outcome(monkeypatch, dataset: Path) -> None:
    fake = FakeRemote(scripts=[[worker("Three vendors. Analysis complete")], [worker("Final result: Acme")]])
    _install_remote(monkeypatch, fake)

    result = CliRunner().invoke(cli_app_module.app, ["analyze", str(dataset), "-q", "How many?", "-q", "Top?"])

    assert result.exit_code == 0
    assert "completed" in result.stdout
    assert "Three vendors" in result.stdout
    assert "Final result: Acme" in result.stdout
    assert fake.sent == ["How many?", "Top?"]


def test_analyze_shows_fallback_when_remote_fails(monkeypatch, dataset: Path) -> None:
    _install_remote(monkeypatch, FakeRemote(scripts=[[ConnectionError("down")]]))

    result = CliRunner().invoke(cli_app_module.app, ["analyze", str(dataset), "-q", "Total?"])

    assert result.exit_code == 0
    assert "degraded" in result.stdout
    assert "Total columns: 3" in result.stdout


def test_analyze_exits_when_session_cannot_start(monkeypatch, dataset: Path) -> None:
    _install_remote(monkeypatch, FakeRemote(fail_on={"create_worker": RuntimeError("quota")}))

    result = CliRunner().invoke(cli_app_module.app, ["analyze", str(dataset)])

    assert result.exit_code == 1
    assert "could not start the remote session (worker)" in result.stdout


def test_analyze_exits_without_api_key(monkeypatch, dataset: Path) -> None:
    def _missing_key(settings):
        raise ApiKeyNotConfiguredError("API key not configured")

    monkeypatch.setattr(cli_app_module, "build_remote", _missing_key)

    result = CliRunner().invoke(cli_app_module.app, ["analyze", str(dataset)])

    assert result.exit_code == 1
    assert "API key not configured" in result.stdout


def test_analyze_missing_file(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli_app_module.app, ["analyze", str(tmp_path / "missing.csv")])

    assert result.exit_code == 1
    assert "CSV file not found" in result.stdout


def test_inspect_summarizes_locally(dataset: Path) -> None:
    result = CliRunner().invoke(cli_app_module.app, ["inspect", str(dataset), "-q", "Spend by vendor?"])

    assert result.exit_code == 0
    assert "Fallback CSV Analysis" in result.stdout
    assert "Total rows: 3" in result.stdout


def test_inspect_empty_file_fails(tmp_path: Path) -> None:
    empty = tmp_path / "empty.csv"
    empty.write_bytes(b"")

    result = CliRunner().invoke(cli_app_module.app, ["inspect", str(empty)])

    assert result.exit_code == 1
    assert "Unable to parse CSV headers" in result.stdout
