import pytest

from chain import Chain
from typed_signer import LocalSigner

# well-known local development node accounts (DO NOT USE IN PRODUCTION)
OWNER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OTHER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"

URI = "ipfs://bafkreigkzhpfdzy7ioefvodoetfcr26tf2cazn53lgie3olu5pyvmarpn4"


@pytest.fixture(autouse=True)
def audit_path(tmp_path, monkeypatch):
    path = tmp_path / "audit.jsonl"
    monkeypatch.setenv("AUDIT_LOG", str(path))
    return path


@pytest.fixture
def owner():
    return LocalSigner(OWNER_KEY)


@pytest.fixture
def other_account():
    return LocalSigner(OTHER_KEY)


@pytest.fixture
def chain():
    return Chain(chain_id=31337)


@pytest.fixture
def owner_key():
    return OWNER_KEY


@pytest.fixture
def uri():
    return URI
