import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from http_observatory.auth.clients import OpenIdToken
from http_observatory.auth.credentials import Credentials, parse_timestamp
from http_observatory.auth.provider import AnonymousCredentialsProvider
from http_observatory.auth.store import CredentialStore, FileCredentialStore, InMemoryCredentialStore
from http_observatory.config import CognitoConfig
from http_observatory.errors import CredentialsError, FederationError

FUTURE = datetime.now(timezone.utc) + timedelta(hours=1)
PAST = datetime.now(timezone.utc) - timedelta(hours=1)


def make_credentials(key: str = "AKID", expiration: datetime = FUTURE) -> Credentials:
    return Credentials(access_key_id=key, secret_access_key="secret", session_token="token", expiration=expiration)


class FakeIdentityClient:
    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls = []

    async def get_id(self, identity_pool_id: str) -> str:
        self.calls.append(("GetId", identity_pool_id))
        if self.failures:
            self.failures -= 1
            raise FederationError("GetId", "throttled", 400)
        return "identity"

    async def get_open_id_token(self, identity_id: str) -> OpenIdToken:
        self.calls.append(("GetOpenIdToken", identity_id))
        return OpenIdToken(identity_id=identity_id, token="jwt")


class FakeStsClient:
    def __init__(self, credentials: Credentials) -> None:
        self.credentials = credentials
        self.calls = []

    async def assume_role_with_web_identity(self, role_arn: str, session_name: str, web_identity_token: str) -> Credentials:
        self.calls.append((role_arn, session_name, web_identity_token))
        return self.credentials


class BrokenStore(CredentialStore):
    def get(self, key):
        raise OSError("disk unavailable")

    def set(self, key, value):
        raise OSError("disk unavailable")


def make_provider(*, failures: int = 0, store=None, **config_kwargs):
    config = CognitoConfig(
        identity_pool_id="us-west-2:pool",
        guest_role_arn="arn:aws:iam::1:role/guest",
        application_id="app-1",
        **config_kwargs,
    )
    identity = FakeIdentityClient(failures)
    sts = FakeStsClient(make_credentials())
    provider = AnonymousCredentialsProvider(config, store=store, identity_client=identity, sts_client=sts)
    return provider, identity, sts


def test_config_derives_region_and_storage_key() -> None:
    config = CognitoConfig(identity_pool_id="eu-central-1:abc", guest_role_arn="arn", application_id="xyz")
    assert config.region == "eu-central-1"
    assert config.credential_storage_key == "cwr_c_xyz"


def test_exchange_caches_and_persists_credentials() -> None:
    store = InMemoryCredentialStore()
    provider, identity, sts = make_provider(store=store)

    credentials = asyncio.run(provider.get_anonymous_credentials())

    assert credentials.access_key_id == "AKID"
    assert provider.credentials is credentials
    assert identity.calls == [("GetId", "us-west-2:pool"), ("GetOpenIdToken", "identity")]
    assert sts.calls == [("arn:aws:iam::1:role/guest", "cwr", "jwt")]
    assert json.loads(store.values["cwr_c_app-1"])["accessKeyId"] == "AKID"


def test_two_failures_raise_without_third_attempt() -> None:
    store = InMemoryCredentialStore()
    provider, identity, sts = make_provider(failures=5, store=store)

    with pytest.raises(CredentialsError) as info:
        asyncio.run(provider.get_anonymous_credentials())

    assert info.value.attempts == 2
    assert isinstance(info.value.__cause__, FederationError)
    assert identity.calls == [("GetId", "us-west-2:pool")] * 2
    assert sts.calls == []
    assert provider.credentials is None
    assert store.values == {}


def test_failure_then_success_returns_credentials() -> None:
    provider, identity, _ = make_provider(failures=1)

    credentials = asyncio.run(provider.get_anonymous_credentials())

    assert credentials.access_key_id == "AKID"
    assert provider.attempts == 2
    assert len(identity.calls) == 3


def test_max_attempts_is_configurable() -> None:
    provider, identity, _ = make_provider(failures=5, max_attempts=3)

    with pytest.raises(CredentialsError) as info:
        asyncio.run(provider.get_anonymous_credentials())

    assert info.value.attempts == 3
    assert len(identity.calls) == 3


def test_persistence_failure_is_ignored() -> None:
    provider, _, _ = make_provider(store=BrokenStore())

    credentials = asyncio.run(provider.get_credentials())

    assert provider.credentials is credentials


def test_get_credentials_prefers_memory_then_store() -> None:
    store = InMemoryCredentialStore()
    store.set("cwr_c_app-1", json.dumps(make_credentials("STORED").to_dict()))
    provider, identity, _ = make_provider(store=store)

    first = asyncio.run(provider.get_credentials())
    second = asyncio.run(provider.get_credentials())

    assert first.access_key_id == "STORED"
    assert second is first
    assert identity.calls == []


def test_expired_credentials_trigger_a_new_exchange() -> None:
    store = InMemoryCredentialStore()
    store.set("cwr_c_app-1", json.dumps(make_credentials("OLD", PAST).to_dict()))
    provider, identity, _ = make_provider(store=store)
    provider.credentials = make_credentials("STALE", PAST)

    credentials = asyncio.run(provider.get_credentials())

    assert credentials.access_key_id == "AKID"
    assert len(identity.calls) == 2


def test_unreadable_store_entry_is_ignored() -> None:
    store = InMemoryCredentialStore()
    store.set("cwr_c_app-1", "{not json")
    provider, _, _ = make_provider(store=store)

    assert asyncio.run(provider.get_credentials()).access_key_id == "AKID"


def test_credentials_round_trip_through_dict() -> None:
    credentials = make_credentials()
    assert Credentials.from_dict(credentials.to_dict()) == credentials
    assert credentials.expired(FUTURE + timedelta(seconds=1))
    assert not credentials.expired(PAST)


def test_parse_timestamp_assumes_utc() -> None:
    assert parse_timestamp("2030-01-01T00:00:00Z") == datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp("2030-01-01T00:00:00") == datetime(2030, 1, 1, tzinfo=timezone.utc)


def test_file_store_writes_one_file_per_key(tmp_path) -> None:
    store = FileCredentialStore(tmp_path / "cache")

    assert store.get("cwr_c_app-1") is None
    store.set("cwr_c_app-1", "value")

    assert store.get("cwr_c_app-1") == "value"
    assert (tmp_path / "cache" / "cwr_c_app-1.json").read_text() == "value"
    assert not list((tmp_path / "cache").glob("*.tmp"))


def test_retry_delay_sleeps_between_attempts(monkeypatch) -> None:
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("http_observatory.auth.provider.asyncio.sleep", fake_sleep)
    provider, identity, _ = make_provider(failures=5, retry_delay=0.5)

    with pytest.raises(CredentialsError):
        asyncio.run(provider.get_anonymous_credentials())

    assert delays == [0.5]
    assert len(identity.calls) == 2


def test_zero_retry_delay_does_not_sleep(monkeypatch) -> None:
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("http_observatory.auth.provider.asyncio.sleep", fake_sleep)
    provider, _, _ = make_provider(failures=1)

    asyncio.run(provider.get_anonymous_credentials())

    assert delays == []
