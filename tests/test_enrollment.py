"""Enroller のユニットテスト"""

import threading

import pytest
from conftest import RecordingSleep

from macfleet_command import InMemoryCommandRunner
from macfleet_tailscale import (
    AuthKey,
    AuthKeyRequest,
    Enroller,
    EnrollmentSettings,
    KeySource,
    OAuthToken,
    TailscaleApi,
    TailscaleError,
    TailscaleErrorCodes,
)

BINARY = "/Applications/Tailscale.app/Contents/MacOS/Tailscale"


class StubTailscaleApi(TailscaleApi):
    """固定のキーを返すテスト用 API。"""

    def __init__(self, key: str = "tskey-auth-issued", error: Exception | None = None) -> None:
        self.key = key
        self.error = error
        self.requests: list[AuthKeyRequest] = []

    def get_access_token(self) -> OAuthToken:
        if self.error is not None:
            raise self.error
        return OAuthToken(access_token="tok", token_type="Bearer", expires_at=0)

    def create_auth_key(self, token: OAuthToken, request: AuthKeyRequest) -> AuthKey:
        self.requests.append(request)
        return AuthKey(key=self.key)


@pytest.fixture
def quiet_runner(runner: InMemoryCommandRunner) -> InMemoryCommandRunner:
    """ブラウザが起動していない状態のランナー。"""
    runner.set_response(["pgrep"], returncode=1)
    runner.set_response(["scutil", "--get", "ComputerName"], stdout="Office Mac\n")
    return runner


def suppressor_alive() -> bool:
    return any(t.name == "browser-suppressor" for t in threading.enumerate())


def up_calls(runner: InMemoryCommandRunner) -> list[tuple[str, ...]]:
    return runner.calls_with_prefix([BINARY, "up"])


def test_enroll_with_provided_key(quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep) -> None:
    """指定された auth key とホスト名で tailscale up を実行すること。"""
    settings = EnrollmentSettings(tags=["tag:mac", "tag:corp"], hostname="mac-01")
    result = Enroller(settings, quiet_runner, auth_key="tskey-auth-given", sleep=sleep).run()

    assert up_calls(quiet_runner) == [
        (
            BINARY,
            "up",
            "--reset",
            "--auth-key=tskey-auth-given",
            "--advertise-tags=tag:mac,tag:corp",
            "--hostname=mac-01",
            "--accept-routes",
        )
    ]
    assert result.hostname == "mac-01"
    assert result.key_source == KeySource.PROVIDED
    assert quiet_runner.calls_with_prefix(["scutil"]) == []
    assert sleep.calls == [settings.launch_wait]


def test_enroll_steps_in_order(quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep) -> None:
    settings = EnrollmentSettings(hostname="mac-01", suppress_browser=False)
    Enroller(settings, quiet_runner, auth_key="tskey-auth-given", sleep=sleep).run()
    programs = [call[0] for call in quiet_runner.calls]
    assert programs == [settings.lsregister_path, "open", BINARY, BINARY]
    assert quiet_runner.calls[1] == ("open", "-g", "-a", settings.app_path)
    assert quiet_runner.calls[-1] == (BINARY, "status")


def test_enroll_with_oauth(quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep) -> None:
    """auth key がなければ API でキーを発行すること。"""
    api = StubTailscaleApi()
    settings = EnrollmentSettings(tags=["tag:mac"])
    result = Enroller(settings, quiet_runner, api=api, sleep=sleep).run()

    assert result.key_source == KeySource.OAUTH
    assert result.hostname == "Office Mac"
    assert api.requests[0].tags == ["tag:mac"]
    assert api.requests[0].ephemeral
    assert "--auth-key=tskey-auth-issued" in up_calls(quiet_runner)[0]
    assert "--hostname=Office Mac" in up_calls(quiet_runner)[0]


def test_requires_key_or_api(runner: InMemoryCommandRunner) -> None:
    with pytest.raises(ValueError):
        Enroller(EnrollmentSettings(), runner)


def test_hostname_unavailable(runner: InMemoryCommandRunner, sleep: RecordingSleep) -> None:
    """ホスト名が取得できなければ副作用の前に失敗すること。"""
    runner.set_response(["scutil"], returncode=1)
    enroller = Enroller(EnrollmentSettings(), runner, auth_key="tskey-auth-given", sleep=sleep)
    with pytest.raises(TailscaleError) as exc_info:
        enroller.run()
    assert exc_info.value.code == TailscaleErrorCodes.HOSTNAME_UNAVAILABLE
    assert runner.calls == [("scutil", "--get", "ComputerName")]


def test_up_failure(quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep) -> None:
    quiet_runner.set_response([BINARY, "up"], returncode=1, stderr="invalid key")
    enroller = Enroller(
        EnrollmentSettings(hostname="mac-01"), quiet_runner, auth_key="tskey-auth-bad", sleep=sleep
    )
    with pytest.raises(TailscaleError) as exc_info:
        enroller.run()
    assert exc_info.value.code == TailscaleErrorCodes.UP_FAILED
    assert not suppressor_alive()


def test_key_failure_stops_suppressor(
    quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep
) -> None:
    """キー発行に失敗してもブラウザ抑止スレッドは停止していること。"""
    api = StubTailscaleApi(
        error=TailscaleError(code=TailscaleErrorCodes.TOKEN_REQUEST_FAILED, message="401")
    )
    enroller = Enroller(EnrollmentSettings(hostname="mac-01"), quiet_runner, api=api, sleep=sleep)
    with pytest.raises(TailscaleError):
        enroller.run()
    assert not suppressor_alive()
    assert up_calls(quiet_runner) == []


def test_lsregister_failure_is_not_fatal(
    quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep
) -> None:
    settings = EnrollmentSettings(hostname="mac-01", suppress_browser=False)
    quiet_runner.set_missing(settings.lsregister_path)
    result = Enroller(settings, quiet_runner, auth_key="tskey-auth-given", sleep=sleep).run()
    assert result.hostname == "mac-01"
    assert len(up_calls(quiet_runner)) == 1


def test_status_output_is_returned(
    quiet_runner: InMemoryCommandRunner, sleep: RecordingSleep
) -> None:
    quiet_runner.set_response([BINARY, "status"], stdout="100.64.0.1 mac-01 tagged-devices macOS -")
    result = Enroller(
        EnrollmentSettings(hostname="mac-01"), quiet_runner, auth_key="tskey-auth-given", sleep=sleep
    ).run()
    assert "100.64.0.1" in result.status_output
