"""Tests for the command-line interface."""

import json
import os
import re
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from typer.testing import CliRunner

from oauth_handshake.auth import FileBackend, StateCodec
from oauth_handshake.cli import app
from oauth_handshake.cli.config import CLIConfig
from oauth_handshake.flow import AuthorizationFlow
from tests.fakes import FakeProvider, oauth1_handler, oauth2_handler

runner = CliRunner()

URL_PATTERN = re.compile(r"https://\S+")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in list(os.environ):
        if var.startswith(("OAUTH_", "XDG_")):
            monkeypatch.delenv(var)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Config directory with GitHub and Twitter credentials."""
    path = tmp_path / "config"
    path.mkdir()
    (path / "config.json").write_text(
        json.dumps(
            {
                "callback_base_url": "https://app.example.com",
                "providers": {
                    "github": {"client_id": "gh-id", "client_secret": "gh-secret"},
                    "twitter": {"client_id": "tw-key", "client_secret": "tw-secret"},
                },
            }
        )
    )
    return path


def global_options(config_dir: Path, tmp_path: Path) -> list[str]:
    return ["--config-dir", str(config_dir), "--data-dir", str(tmp_path / "data")]


def use_fake_provider(monkeypatch: pytest.MonkeyPatch, provider: FakeProvider) -> None:
    """Route the CLI's flow through a fake provider transport."""

    @asynccontextmanager
    async def fake_get_flow(config: CLIConfig) -> AsyncGenerator[AuthorizationFlow]:
        oauth_config = config.load_config()
        store = config.pending_store(oauth_config.pending_ttl)
        async with provider.client() as http:
            async with AuthorizationFlow(
                config.registry, oauth_config, store, http_client=http
            ) as flow:
                yield flow

    monkeypatch.setattr("oauth_handshake.cli.commands.auth.get_flow", fake_get_flow)


class TestCLIConfig:
    """Tests for CLI default paths."""

    def test_defaults_match_library_paths(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The CLI reads and writes the same files the library uses by default."""
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

        config = CLIConfig()

        assert config.config_path == tmp_path / "config" / "oauth-handshake" / "config.json"
        assert config.pending_path == FileBackend().path


class TestProvidersCommand:
    """Tests for 'providers list'."""

    def test_list_shows_configured_flag(self, config_dir: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app, [*global_options(config_dir, tmp_path), "providers", "list", "--format", "json"]
        )

        assert result.exit_code == 0
        assert '"name": "github"' in result.output
        assert '"configured": true' in result.output
        assert '"configured": false' in result.output

    def test_list_without_config(self, tmp_path: Path) -> None:
        """Listing works before any credentials are configured."""
        result = runner.invoke(
            app, ["--config-dir", str(tmp_path / "none"), "providers", "list", "-f", "json"]
        )

        assert result.exit_code == 0
        assert '"configured": true' not in result.output


class TestStateCommands:
    """Tests for 'state encode' and 'state decode'."""

    def test_encode(self) -> None:
        result = runner.invoke(app, ["state", "encode", "redirect=/dashboard"])

        assert result.exit_code == 0
        assert StateCodec().decode(result.output.strip()) == {"redirect": "/dashboard"}

    def test_encode_rejects_bad_pair(self) -> None:
        result = runner.invoke(app, ["state", "encode", "no-equals-sign"])

        assert result.exit_code == 1

    def test_decode(self) -> None:
        token = StateCodec().encode({"redirect": "/home"})

        result = runner.invoke(app, ["state", "decode", token])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"redirect": "/home"}

    def test_decode_malformed(self) -> None:
        result = runner.invoke(app, ["state", "decode", "%%%"])

        assert result.exit_code == 1


class TestAuthCommands:
    """Tests for 'auth login' and 'auth callback'."""

    def test_oauth2_round_trip(
        self, config_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        use_fake_provider(monkeypatch, FakeProvider(oauth2_handler))
        options = global_options(config_dir, tmp_path)

        login = runner.invoke(
            app, [*options, "auth", "login", "github", "-r", "/dashboard", "--no-browser"]
        )
        assert login.exit_code == 0
        url = URL_PATTERN.search(login.output)
        assert url is not None
        assert url.group().startswith("https://github.com/login/oauth/authorize?")
        state = parse_qs(urlsplit(url.group()).query)["state"][0]

        callback_url = f"https://app.example.com/oauth/github/callback?code=abc&state={state}"
        callback = runner.invoke(app, [*options, "auth", "callback", "github", callback_url])

        assert callback.exit_code == 0
        assert "gho_abc" in callback.output
        assert "/dashboard" in callback.output

    def test_oauth1_round_trip_across_invocations(
        self, config_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The request-token secret survives between login and callback processes."""
        use_fake_provider(monkeypatch, FakeProvider(oauth1_handler))
        options = global_options(config_dir, tmp_path)

        login = runner.invoke(app, [*options, "auth", "login", "twitter", "--no-browser"])
        assert login.exit_code == 0
        assert "oauth_token=req-token" in login.output
        assert (tmp_path / "data" / "pending.json").exists()

        callback_url = (
            "https://app.example.com/oauth/twitter/callback?oauth_token=req-token&oauth_verifier=v"
        )
        callback = runner.invoke(app, [*options, "auth", "callback", "twitter", callback_url])

        assert callback.exit_code == 0
        assert "acc-token" in callback.output

    def test_oauth1_callback_from_other_session(
        self, config_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        use_fake_provider(monkeypatch, FakeProvider(oauth1_handler))
        options = global_options(config_dir, tmp_path)
        runner.invoke(
            app, [*options, "--session", "one", "auth", "login", "twitter", "--no-browser"]
        )

        callback_url = "https://app.example.com/oauth/twitter/callback?oauth_token=req-token"
        result = runner.invoke(
            app, [*options, "--session", "two", "auth", "callback", "twitter", callback_url]
        )

        assert result.exit_code == 1

    def test_denied_callback(
        self, config_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        use_fake_provider(monkeypatch, FakeProvider(oauth2_handler))

        result = runner.invoke(
            app,
            [
                *global_options(config_dir, tmp_path),
                "auth",
                "callback",
                "github",
                "https://app.example.com/oauth/github/callback?error=access_denied",
            ],
        )

        assert result.exit_code == 1

    def test_unusable_token_body_reported(
        self, config_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A bad token body is printed as an error, not a traceback."""
        use_fake_provider(
            monkeypatch,
            FakeProvider(
                lambda request: httpx.Response(
                    200, json={"access_token": "x", "expires_in": "never"}
                )
            ),
        )

        result = runner.invoke(
            app,
            [
                *global_options(config_dir, tmp_path),
                "auth",
                "callback",
                "github",
                "https://app.example.com/oauth/github/callback?code=abc",
            ],
        )

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_malformed_config_reported(self, config_dir: Path, tmp_path: Path) -> None:
        (config_dir / "config.json").write_text("{bad")

        result = runner.invoke(
            app,
            [*global_options(config_dir, tmp_path), "auth", "login", "github", "--no-browser"],
        )

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)

    def test_unsupported_provider(self, config_dir: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            [*global_options(config_dir, tmp_path), "auth", "login", "myspace", "--no-browser"],
        )

        assert result.exit_code == 1

    def test_login_opens_browser(
        self, config_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        opened: list[str] = []
        monkeypatch.setattr("oauth_handshake.cli.commands.auth.webbrowser.open", opened.append)
        use_fake_provider(monkeypatch, FakeProvider(oauth2_handler))

        result = runner.invoke(
            app, [*global_options(config_dir, tmp_path), "auth", "login", "github"]
        )

        assert result.exit_code == 0
        assert opened and opened[0].startswith("https://github.com/login/oauth/authorize?")
