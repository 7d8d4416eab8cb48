# ============================================================================
# MODULE: voucher_issuer.py
# PURPOSE: Off-chain side of lazy minting. Build an NFT voucher, sign it
#          deterministically (EIP-712), verify it locally, audit-log it.
# ============================================================================

import argparse
import json
import os
import sys
from typing import NamedTuple

import audit_log
from chain import HARDHAT_CHAIN_ID
from eip712_domain import Domain
from lazy_mint import LAZY_MINT_NAME, LAZY_MINT_VERSION, VOUCHER_SCHEMA, NFTVoucher
from minter_keys import load_private_key
from sign_core import recover_digest
from typed_signer import LocalSigner, sign_typed_data


class IssuedVoucher(NamedTuple):
    voucher: NFTVoucher
    signature: bytes
    digest: bytes

    def to_json(self) -> dict:
        return {
            "voucher": self.voucher.to_message(),
            "signature": "0x" + self.signature.hex(),
            "digest": "0x" + self.digest.hex(),
        }


class LocalVerificationFailed(RuntimeError):
    pass


class VoucherIssuer:
    def __init__(self, signer, contract_address: str, chain_id: int, audit=audit_log.append):
        self.signer = signer
        self.domain = Domain(LAZY_MINT_NAME, LAZY_MINT_VERSION, chain_id, contract_address)
        self._audit = audit

    def issue(self, token_id: int, uri: str) -> IssuedVoucher:
        voucher = NFTVoucher(token_id, uri)

        # 1. Sign the voucher under the contract's domain
        signature, digest = sign_typed_data(self.domain, VOUCHER_SCHEMA, voucher.to_message(), self.signer)

        # 2. Verify local signature before it leaves this process
        recovered = recover_digest(digest, signature)
        if recovered != self.signer.address:
            raise LocalVerificationFailed(f"recovered {recovered}, expected {self.signer.address}")

        # 3. Audit log
        self._audit({
            "event": "voucher_signed",
            "contract": self.domain.verifying_contract,
            "chain_id": self.domain.chain_id,
            "token_id": token_id,
            "uri": uri,
            "signer": self.signer.address,
            "digest": digest,
            "signature": signature,
        })
        return IssuedVoucher(voucher, signature, digest)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Sign a LazyMint NFT voucher")
    parser.add_argument("token_id", type=int)
    parser.add_argument("uri")
    parser.add_argument("--contract", required=True, help="LazyMint contract address")
    parser.add_argument("--chain-id", type=int, default=int(os.getenv("CHAIN_ID", HARDHAT_CHAIN_ID)))
    args = parser.parse_args(argv)

    try:
        issuer = VoucherIssuer(LocalSigner(load_private_key()), args.contract, args.chain_id)
        issued = issuer.issue(args.token_id, args.uri)
    except Exception as e:
        print(f"[FATAL] Voucher signing failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps(issued.to_json(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
