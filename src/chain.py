import threading
from collections import defaultdict

import rlp
from eth_utils import to_checksum_address

from sign_core import address_bytes, keccak256

HARDHAT_CHAIN_ID = 31337

def contract_address(deployer: str, nonce: int) -> str:
    """CREATE address: last 20 bytes of keccak256(rlp([sender, nonce]))."""
    return to_checksum_address(keccak256(rlp.encode([address_bytes(deployer), nonce]))[-20:])


class Chain:
    """
    The execution environment contracts run in. It supplies the chain id
    and each contract's own address, and serializes state changes: every
    mutating contract call runs under ``lock``.
    """

    def __init__(self, chain_id: int = HARDHAT_CHAIN_ID):
        self.chain_id = chain_id
        self.lock = threading.RLock()
        self._nonces = defaultdict(int)

    def nonce(self, account: str) -> int:
        return self._nonces[to_checksum_address(account)]

    def deploy(self, contract_cls, deployer: str, *args, **kwargs):
        with self.lock:
            deployer = to_checksum_address(deployer)
            address = contract_address(deployer, self._nonces[deployer])
            self._nonces[deployer] += 1
            return contract_cls(self, address, deployer, *args, **kwargs)
