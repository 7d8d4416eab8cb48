import pytest

import minter_keys


class MemoryKeyring:
    def __init__(self):
        self.store = {}

    def get_password(self, service, username):
        return self.store.get((service, username))

    def set_password(self, service, username, password):
        self.store[(service, username)] = password


@pytest.fixture
def memory_keyring(monkeypatch):
    ring = MemoryKeyring()
    monkeypatch.setattr(minter_keys.keyring, "get_password", ring.get_password)
    monkeypatch.setattr(minter_keys.keyring, "set_password", ring.set_password)
    monkeypatch.delenv(minter_keys.ENV_VAR, raising=False)
    return ring


def test_env_wins(memory_keyring, monkeypatch, owner_key):
    memory_keyring.set_password("lazymint", "minter_key", "0x" + "22" * 32)
    monkeypatch.setenv("MINTER_PRIVATE_KEY", owner_key)
    assert minter_keys.load_private_key() == owner_key


def test_bootstrap_then_load_from_keyring(memory_keyring, monkeypatch, owner, owner_key):
    monkeypatch.setenv("MINTER_PRIVATE_KEY", owner_key)
    assert minter_keys.bootstrap() == owner.address
    monkeypatch.delenv("MINTER_PRIVATE_KEY")
    assert minter_keys.load_private_key() == owner_key


def test_missing_key(memory_keyring):
    with pytest.raises(minter_keys.MissingMinterKey):
        minter_keys.load_private_key()
    with pytest.raises(minter_keys.MissingMinterKey):
        minter_keys.bootstrap()
