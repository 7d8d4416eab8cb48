import json

import pytest

import audit_log
from lazy_mint import LazyMint, NFTVoucher
from voucher_issuer import LocalVerificationFailed, VoucherIssuer, main


def test_issued_voucher_redeems(chain, owner, other_account, uri):
    contract = chain.deploy(LazyMint, owner.address)
    issuer = VoucherIssuer(owner, contract.address, chain.chain_id)
    issued = issuer.issue(0, uri)
    assert issued.voucher == NFTVoucher(0, uri)
    assert contract.voucher_digest(issued.voucher) == issued.digest
    assert contract.redeem(issued.voucher, issued.signature, other_account.address) == 0


def test_issue_is_audited(owner, uri, audit_path):
    issued = VoucherIssuer(owner, "0x5FbDB2315678afecb367f032d93F642f64180aa3", 31337).issue(4, uri)
    (entry,) = audit_log.read(str(audit_path))
    assert entry["event"] == "voucher_signed"
    assert entry["token_id"] == 4
    assert entry["signature"] == "0x" + issued.signature.hex()


class LyingSigner:
    def __init__(self, real, claimed):
        self._real = real
        self.address = claimed

    def sign_digest(self, digest):
        return self._real.sign_digest(digest)


def test_local_verification_catches_wrong_key(owner, other_account, uri):
    issuer = VoucherIssuer(LyingSigner(other_account, owner.address), "0x5FbDB2315678afecb367f032d93F642f64180aa3", 31337)
    with pytest.raises(LocalVerificationFailed):
        issuer.issue(0, uri)


def test_cli_prints_signed_voucher(monkeypatch, capsys, owner_key, uri):
    monkeypatch.setenv("MINTER_PRIVATE_KEY", owner_key)
    assert main(["0", uri, "--contract", "0x5FbDB2315678afecb367f032d93F642f64180aa3"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["voucher"] == {"tokenId": 0, "uri": uri}
    assert len(bytes.fromhex(out["signature"][2:])) == 65


def test_cli_reports_failure(monkeypatch, capsys, uri):
    monkeypatch.setenv("MINTER_PRIVATE_KEY", "0x1234")
    assert main(["0", uri, "--contract", "0x5FbDB2315678afecb367f032d93F642f64180aa3"]) == 1
    assert "[FATAL]" in capsys.readouterr().err
