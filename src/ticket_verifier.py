from eip712_domain import CachedDomainSeparator
from errors import SchemaMismatch
from sign_core import b32, eip712_digest, keccak256, recover_digest, u256, utf8

# Ticket(string eventName,uint256 price)
TICKET_TYPE_STR = "Ticket(string eventName,uint256 price)"
TICKET_TYPES = {
    "Ticket": [
        {"name": "eventName", "type": "string"},
        {"name": "price", "type": "uint256"},
    ]
}


class TicketVerifier:
    """
    On-chain side of the ticket example. The type hash is deployment
    configuration, handed in precomputed, and the struct layout is fixed
    here rather than read from a schema.
    """

    def __init__(self, chain, address: str, deployer: str, name: str, version: str, type_hash: bytes):
        self.chain = chain
        self.address = address
        self.deployer = deployer
        self.type_hash = b32(type_hash)
        self._domain = CachedDomainSeparator(name, version)

    def domain_separator(self) -> bytes:
        return self._domain.get(self.chain.chain_id, self.address)

    def ticket_struct_hash(self, event_name: str, price: int) -> bytes:
        if not isinstance(event_name, str):
            raise SchemaMismatch("Ticket.eventName", f"expected str, got {type(event_name).__name__}")
        if not isinstance(price, int) or isinstance(price, bool) or not 0 <= price < (1 << 256):
            raise SchemaMismatch("Ticket.price", f"expected a uint256, got {price!r}")
        return keccak256(
            self.type_hash +
            keccak256(utf8(event_name)) +   # string is hashed in place
            u256(price)
        )

    def get_signer(self, event_name: str, price: int, signature: bytes) -> str:
        digest = eip712_digest(self.domain_separator(), self.ticket_struct_hash(event_name, price))
        return recover_digest(digest, signature)
