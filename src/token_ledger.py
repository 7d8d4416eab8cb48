from collections import defaultdict
from typing import Dict

from eth_utils import to_checksum_address

from errors import AlreadyMinted, InvalidToken

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class TokenLedger:
    """
    ERC-721 storage: which token ids exist, who owns them, and their URIs.

    A token id that exists has been consumed for good; nothing here
    removes one.
    """

    def __init__(self):
        self._owners: Dict[int, str] = {}
        self._uris: Dict[int, str] = {}
        self._balances: Dict[str, int] = defaultdict(int)

    def exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def check_mint(self, to: str, token_id: int) -> str:
        """Raise if mint(to, token_id) would fail; returns the checksummed recipient."""
        to = to_checksum_address(to)
        if to == ZERO_ADDRESS:
            raise InvalidToken("ERC721: mint to the zero address")
        if self.exists(token_id):
            raise AlreadyMinted(token_id)
        return to

    def mint(self, to: str, token_id: int, uri: str) -> None:
        # all checks precede all writes
        to = self.check_mint(to, token_id)
        self._owners[token_id] = to
        self._uris[token_id] = uri
        self._balances[to] += 1

    def owner_of(self, token_id: int) -> str:
        if not self.exists(token_id):
            raise InvalidToken("ERC721: invalid token ID", details={"token_id": token_id})
        return self._owners[token_id]

    def token_uri(self, token_id: int) -> str:
        if not self.exists(token_id):
            raise InvalidToken("ERC721: invalid token ID", details={"token_id": token_id})
        return self._uris[token_id]

    def balance_of(self, owner: str) -> int:
        owner = to_checksum_address(owner)
        if owner == ZERO_ADDRESS:
            raise InvalidToken("ERC721: address zero is not a valid owner")
        return self._balances.get(owner, 0)

    def __len__(self):
        return len(self._owners)
