from functools import lru_cache
from typing import Any, Mapping, NamedTuple, Optional, Union

from eth_utils import to_checksum_address

from errors import SchemaMismatch
from sign_core import addr, b32, keccak256, u256, utf8

# EIP-712 Domain TypeHash (standard per EIP-712)
DOMAIN_TYPE_STR = "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
DOMAIN_TYPE_STR_SALTED = DOMAIN_TYPE_STR[:-1] + ",bytes32 salt)"
DOMAIN_TYPEHASH = keccak256(utf8(DOMAIN_TYPE_STR))
DOMAIN_TYPEHASH_SALTED = keccak256(utf8(DOMAIN_TYPE_STR_SALTED))


class Domain(NamedTuple):
    """
    The signing domain. Any change to any field invalidates every
    signature made under the previous value.
    """
    name: str
    version: str
    chain_id: int
    verifying_contract: str
    salt: Optional[bytes] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Domain":
        """Build from the eth_signTypedData shape ({name, version, chainId, verifyingContract[, salt]})."""
        allowed = {"name", "version", "chainId", "verifyingContract", "salt"}
        extra = set(data) - allowed
        if extra:
            raise SchemaMismatch("EIP712Domain", f"unsupported domain field(s) {sorted(extra)}")
        try:
            return cls(
                name=data["name"],
                version=data["version"],
                chain_id=data["chainId"],
                verifying_contract=data["verifyingContract"],
                salt=data.get("salt"),
            )
        except KeyError as e:
            raise SchemaMismatch(f"EIP712Domain.{e.args[0]}", "missing domain field")

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": to_checksum_address(self.verifying_contract),
        }
        if self.salt is not None:
            data["salt"] = self.salt
        return data


DomainLike = Union[Domain, Mapping[str, Any]]


def as_domain(domain: DomainLike) -> Domain:
    return domain if isinstance(domain, Domain) else Domain.from_dict(domain)


def domain_type_string(domain: DomainLike) -> str:
    return DOMAIN_TYPE_STR if as_domain(domain).salt is None else DOMAIN_TYPE_STR_SALTED


def _check(domain: Domain) -> None:
    if not isinstance(domain.name, str):
        raise SchemaMismatch("EIP712Domain.name", "expected str")
    if not isinstance(domain.version, str):
        raise SchemaMismatch("EIP712Domain.version", "expected str")
    if not isinstance(domain.chain_id, int) or isinstance(domain.chain_id, bool) or domain.chain_id < 0:
        raise SchemaMismatch("EIP712Domain.chainId", "expected a non-negative int")
    if domain.salt is not None and (not isinstance(domain.salt, bytes) or len(domain.salt) != 32):
        raise SchemaMismatch("EIP712Domain.salt", "expected 32 bytes")


@lru_cache(maxsize=256)
def _separator(domain: Domain) -> bytes:
    try:
        contract = addr(domain.verifying_contract)
    except ValueError as e:
        raise SchemaMismatch("EIP712Domain.verifyingContract", str(e))
    words = [
        DOMAIN_TYPEHASH if domain.salt is None else DOMAIN_TYPEHASH_SALTED,
        keccak256(utf8(domain.name)),
        keccak256(utf8(domain.version)),
        u256(domain.chain_id),
        contract,
    ]
    if domain.salt is not None:
        words.append(b32(domain.salt))
    return keccak256(b"".join(words))


def domain_separator(domain: DomainLike) -> bytes:
    """
    Computes the EIP-712 Domain Separator.

    Results are memoized on the exact domain tuple, so a new chain id,
    contract address, name, version or salt is always a fresh computation.
    """
    domain = as_domain(domain)
    # checked before the lookup: 7.0 and True hash equal to int cache keys
    _check(domain)
    return _separator(domain)


class CachedDomainSeparator:
    """
    The separator a deployed verifier holds: name and version are fixed at
    construction, chain id and contract address come from the execution
    environment. The cached value is rebuilt whenever either of those moves.
    """

    def __init__(self, name: str, version: str):
        self.name = name
        self.version = version
        self._cached_key = None
        self._cached = None

    def get(self, chain_id: int, verifying_contract: str) -> bytes:
        key = (type(chain_id), chain_id, verifying_contract)
        if key != self._cached_key:
            self._cached = domain_separator(Domain(self.name, self.version, chain_id, verifying_contract))
            self._cached_key = key
        return self._cached
