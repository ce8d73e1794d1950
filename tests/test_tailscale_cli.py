"""macfleet-tailscale-join コマンドのテスト"""

import httpx
import pytest
import respx
from conftest import RecordingSleep

from macfleet_command import InMemoryCommandRunner
from macfleet_tailscale.cli import main

BINARY = "/Applications/Tailscale.app/Contents/MacOS/Tailscale"
TOKEN_URL = "https://api.tailscale.com/api/v2/oauth/token"
KEYS_URL = "https://api.tailscale.com/api/v2/tailnet/-/keys"


@pytest.fixture
def quiet_runner(runner: InMemoryCommandRunner) -> InMemoryCommandRunner:
    runner.set_response(["pgrep"], returncode=1)
    runner.set_response(["scutil", "--get", "ComputerName"], stdout="Office Mac\n")
    return runner


def run_cli(
    argv: list[str],
    runner: InMemoryCommandRunner,
    sleep: RecordingSleep,
    environ: dict[str, str],
) -> int:
    return main(argv, runner=runner, sleep=sleep, environ=environ)


def up_call(runner: InMemoryCommandRunner) -> tuple[str, ...]:
    calls = runner.calls_with_prefix([BINARY, "up"])
    assert len(calls) == 1
    return calls[0]


def test_missing_credentials(quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep) -> None:
    """資格情報がなければ何も実行せず 1 で終了すること。"""
    assert run_cli([], quiet_runner, sleep, {}) == 1
    assert quiet_runner.calls == []


def test_client_id_without_secret(
    quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep
) -> None:
    assert run_cli([], quiet_runner, sleep, {"TAILSCALE_CLIENT_ID": "id"}) == 1
    assert quiet_runner.calls == []


def test_auth_key_from_environment(
    quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep
) -> None:
    environ = {"TAILSCALE_AUTH_KEY": "tskey-auth-env", "TAILSCALE_TAGS": "tag:mac"}
    assert run_cli([], quiet_runner, sleep, environ) == 0
    call = up_call(quiet_runner)
    assert "--auth-key=tskey-auth-env" in call
    assert "--advertise-tags=tag:mac" in call
    assert "--hostname=Office Mac" in call


def test_flags_override_environment(
    quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep
) -> None:
    """--tags と --hostname が環境変数より優先されること。"""
    environ = {
        "TAILSCALE_AUTH_KEY": "tskey-auth-env",
        "TAILSCALE_TAGS": "tag:env",
        "TAILSCALE_HOSTNAME": "env-host",
    }
    argv = ["--tags", "tag:a,tag:b", "--hostname", "flag-host"]
    assert run_cli(argv, quiet_runner, sleep, environ) == 0
    call = up_call(quiet_runner)
    assert "--advertise-tags=tag:a,tag:b" in call
    assert "--hostname=flag-host" in call
    assert quiet_runner.calls_with_prefix(["scutil"]) == []


@respx.mock
def test_oauth_enrollment(quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep) -> None:
    """OAuth 資格情報でキーを発行して参加すること。"""
    respx.post(TOKEN_URL).mock(
        return_value=httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
    )
    respx.post(KEYS_URL).mock(
        return_value=httpx.Response(200, json={"key": "tskey-auth-oauth", "id": "k1"})
    )
    environ = {"TAILSCALE_CLIENT_ID": "id", "TAILSCALE_CLIENT_SECRET": "secret"}
    assert run_cli([], quiet_runner, sleep, environ) == 0
    assert "--auth-key=tskey-auth-oauth" in up_call(quiet_runner)
    assert "--advertise-tags=tag:default" in up_call(quiet_runner)


@respx.mock
def test_oauth_failure_exits_one(
    quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep
) -> None:
    respx.post(TOKEN_URL).mock(return_value=httpx.Response(401, text="Unauthorized"))
    environ = {"TAILSCALE_CLIENT_ID": "id", "TAILSCALE_CLIENT_SECRET": "bad"}
    assert run_cli([], quiet_runner, sleep, environ) == 1
    assert quiet_runner.calls_with_prefix([BINARY, "up"]) == []


def test_invalid_tag_exits_one(quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep) -> None:
    environ = {"TAILSCALE_AUTH_KEY": "tskey-auth-env"}
    assert run_cli(["--tags", "mac"], quiet_runner, sleep, environ) == 1
    assert quiet_runner.calls == []


def test_up_failure_exits_one(quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep) -> None:
    quiet_runner.set_response([BINARY, "up"], returncode=1, stderr="backend error")
    environ = {"TAILSCALE_AUTH_KEY": "tskey-auth-env"}
    assert run_cli([], quiet_runner, sleep, environ) == 1


def test_no_browser_suppression(
    quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep
) -> None:
    environ = {"TAILSCALE_AUTH_KEY": "tskey-auth-env"}
    assert run_cli(["--no-browser-suppression"], quiet_runner, sleep, environ) == 0
    assert quiet_runner.calls_with_prefix(["pgrep"]) == []


def test_unknown_option_exits_one(
    quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep
) -> None:
    with pytest.raises(SystemExit) as exc_info:
        run_cli(["--bogus"], quiet_runner, sleep, {})
    assert exc_info.value.code == 1
