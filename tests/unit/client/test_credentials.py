"""Unit tests for credential sources."""

import pytest

from ecomclient.client.credentials import EnvCredentialSource, InMemoryCredentialStore
from ecomclient.protocols.credentials import CredentialSource


class TestInMemoryCredentialStore:
    """Tests for the in-memory token store."""

    def test_empty_by_default(self):
        assert InMemoryCredentialStore().get_token() is None

    def test_empty_string_treated_as_no_token(self):
        assert InMemoryCredentialStore("").get_token() is None

    def test_set_and_clear(self):
        store = InMemoryCredentialStore()
        store.set_token("abc")
        assert store.get_token() == "abc"
        store.clear()
        assert store.get_token() is None

    def test_set_empty_token_rejected(self):
        with pytest.raises(ValueError, match="token cannot be empty"):
            InMemoryCredentialStore().set_token("")

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryCredentialStore(), CredentialSource)


class TestEnvCredentialSource:
    """Tests for the environment-backed token source."""

    def test_reads_default_variable(self, monkeypatch):
        monkeypatch.setenv("ECOM_AUTH_TOKEN", "from-env")
        assert EnvCredentialSource().get_token() == "from-env"

    def test_reads_on_every_call(self, monkeypatch):
        source = EnvCredentialSource("SHOP_TOKEN")
        monkeypatch.delenv("SHOP_TOKEN", raising=False)
        assert source.get_token() is None
        monkeypatch.setenv("SHOP_TOKEN", "later")
        assert source.get_token() == "later"
        assert source.variable == "SHOP_TOKEN"

    def test_blank_value_is_no_token(self, monkeypatch):
        monkeypatch.setenv("ECOM_AUTH_TOKEN", "")
        assert EnvCredentialSource().get_token() is None

    def test_satisfies_protocol(self):
        assert isinstance(EnvCredentialSource(), CredentialSource)
