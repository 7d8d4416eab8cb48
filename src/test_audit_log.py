import audit_log
from errors import AlreadyMinted, Eip712Error, ErrorKind, InvalidSigner


def test_append_writes_compact_jsonl(audit_path):
    audit_log.append({"event": "init", "digest": b"\xab\xcd"})
    audit_log.append({"event": "second"})
    lines = audit_path.read_text().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith('{"event":"init","digest":"0xabcd","ts_ns":')
    assert [e["event"] for e in audit_log.read()] == ["init", "second"]


def test_entry_is_not_mutated():
    entry = {"event": "x"}
    audit_log.append(entry)
    assert entry == {"event": "x"}


def test_read_missing_log(tmp_path):
    assert audit_log.read(str(tmp_path / "nope.jsonl")) == []


def test_error_dicts():
    assert AlreadyMinted(5).to_dict() == {
        "error": "AlreadyMinted",
        "reason": "ERC721: token already minted",
        "message": "ERC721: token already minted",
        "details": {"token_id": 5},
    }
    assert InvalidSigner("0xa", "0xb").to_dict()["reason"] == "InvalidSigner"


def test_base_error_has_its_own_kind():
    error = Eip712Error("boom")
    assert error.kind is ErrorKind.ERROR
    assert error.to_dict()["error"] == "Eip712Error"
