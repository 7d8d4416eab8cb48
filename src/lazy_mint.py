"""
Lazy minting: the owner signs NFT vouchers off-chain and anyone may later
redeem one on-chain to mint the token to themselves.

Each token id moves Unminted -> Minted once. Redemption recovers the
voucher's signer, requires it to be the owner fixed at deployment, and
then mints; a second redemption of the same id fails however valid its
signature is.
"""

from typing import Any, Mapping, NamedTuple

from eth_utils import to_checksum_address

import audit_log
from eip712_domain import Domain, domain_separator
from errors import Eip712Error, InvalidSigner
from sign_core import eip712_digest, recover_digest
from token_ledger import TokenLedger
from typed_data import TypeSchema, struct_hash

LAZY_MINT_NAME = "LazyMint"
LAZY_MINT_VERSION = "1"

VOUCHER_TYPES = {
    "NFTVoucher": [
        {"name": "tokenId", "type": "uint256"},
        {"name": "uri", "type": "string"},
    ]
}
VOUCHER_SCHEMA = TypeSchema(VOUCHER_TYPES)


class NFTVoucher(NamedTuple):
    token_id: int
    uri: str

    def to_message(self) -> dict:
        return {"tokenId": self.token_id, "uri": self.uri}

    @classmethod
    def from_message(cls, message: Mapping[str, Any]) -> "NFTVoucher":
        return cls(message["tokenId"], message["uri"])


class LazyMint:
    def __init__(self, chain, address: str, deployer: str, audit=audit_log.append):
        self.chain = chain
        self.address = address
        self.owner = to_checksum_address(deployer)
        self.ledger = TokenLedger()
        self._audit = audit

    @property
    def domain(self) -> Domain:
        # chain id comes from the environment on every call
        return Domain(LAZY_MINT_NAME, LAZY_MINT_VERSION, self.chain.chain_id, self.address)

    def voucher_digest(self, voucher: NFTVoucher) -> bytes:
        return eip712_digest(
            domain_separator(self.domain),
            struct_hash("NFTVoucher", VOUCHER_SCHEMA, voucher.to_message()),
        )

    def get_signer(self, voucher: NFTVoucher, signature: bytes) -> str:
        return recover_digest(self.voucher_digest(voucher), signature)

    def redeem(self, voucher: NFTVoucher, signature: bytes, caller: str) -> int:
        """Mint voucher.token_id to caller; returns the token id."""
        with self.chain.lock:
            try:
                signer = self.get_signer(voucher, signature)
                if signer != self.owner:
                    raise InvalidSigner(signer, self.owner)
                to = self.ledger.check_mint(caller, voucher.token_id)
            except Eip712Error as e:
                self._audit({
                    "event": "redeem_rejected",
                    "contract": self.address,
                    "token_id": voucher.token_id,
                    "caller": caller,
                    "error": e.kind.value,
                    "reason": e.reason,
                })
                raise

            # audited before the write, so a failed audit leaves the token unminted
            self._audit({
                "event": "voucher_redeemed",
                "contract": self.address,
                "token_id": voucher.token_id,
                "uri": voucher.uri,
                "signer": signer,
                "to": to,
            })
            self.ledger.mint(to, voucher.token_id, voucher.uri)
            return voucher.token_id

    # ERC-721 views

    def owner_of(self, token_id: int) -> str:
        return self.ledger.owner_of(token_id)

    def token_uri(self, token_id: int) -> str:
        return self.ledger.token_uri(token_id)

    def balance_of(self, owner: str) -> int:
        return self.ledger.balance_of(owner)
