from typing import Tuple, Union

from coincurve import PrivateKey, PublicKey
from eth_hash.auto import keccak
from eth_utils import (
    decode_hex,
    is_checksum_address,
    is_checksum_formatted_address,
    is_hex_address,
    to_checksum_address,
)

from errors import InvalidSignature

# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2

SIGNATURE_LENGTH = 65

PrivateKeyLike = Union[bytes, str]

# ---------- hash primitives ----------

def keccak256(data: bytes) -> bytes:
    return keccak(bytes(data))

def utf8(text: str) -> bytes:
    return text.encode("utf-8")

# ---------- fixed-width helpers ----------

def u256(x: int) -> bytes:
    if x < 0 or x >> 256:
        raise ValueError(f"{x} does not fit in uint256")
    return x.to_bytes(32, "big")

def i256(x: int) -> bytes:
    # two's complement, sign-extended to 32 bytes
    if not -(1 << 255) <= x < (1 << 255):
        raise ValueError(f"{x} does not fit in int256")
    return (x % (1 << 256)).to_bytes(32, "big")

def address_bytes(a: Union[str, bytes]) -> bytes:
    """Parse an address into its 20 raw bytes.

    Strings must be 0x-prefixed with 40 hex digits. All-lower and all-upper
    strings are taken as-is; mixed case must be a valid EIP-55 checksum.
    """
    if isinstance(a, (bytes, bytearray)):
        if len(a) != 20:
            raise ValueError(f"address must be 20 bytes, got {len(a)}")
        return bytes(a)
    if not isinstance(a, str) or not a.startswith("0x") or not is_hex_address(a):
        raise ValueError(f"not a hex address: {a!r}")
    if is_checksum_formatted_address(a) and not is_checksum_address(a):
        raise ValueError(f"bad address checksum: {a}")
    return bytes.fromhex(a[2:])

def addr(a: Union[str, bytes]) -> bytes:
    # EIP-712 `address` is 160-bit; in encodedData it's left-padded to 32 bytes.
    return b"\x00" * 12 + address_bytes(a)

def b32(x: bytes) -> bytes:
    if len(x) != 32:
        raise ValueError(f"expected 32 bytes, got {len(x)}")
    return bytes(x)

# ---------- EIP-712 core ----------

EIP191_PREFIX = b"\x19\x01"

def eip712_digest(domain_separator: bytes, struct_hash: bytes) -> bytes:
    return keccak256(EIP191_PREFIX + b32(domain_separator) + b32(struct_hash))

# ---------- keys & addresses ----------

def private_key_bytes(private_key: PrivateKeyLike) -> bytes:
    if isinstance(private_key, str):
        private_key = decode_hex(private_key)
    if len(private_key) != 32:
        raise ValueError("private key must be 32 bytes")
    return bytes(private_key)

def public_key_to_address(public_key: PublicKey) -> str:
    uncompressed = public_key.format(compressed=False)
    return to_checksum_address(keccak256(uncompressed[1:])[-20:])

def address_of(private_key: PrivateKeyLike) -> str:
    return public_key_to_address(PrivateKey(private_key_bytes(private_key)).public_key)

# ---------- deterministic secp256k1 ----------

def split_signature(signature: bytes) -> Tuple[int, int, int]:
    """Split a 65-byte r||s||v signature, returning (r, s, recovery id)."""
    if not isinstance(signature, (bytes, bytearray)):
        raise InvalidSignature("signature must be bytes")
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignature(
            f"invalid signature length {len(signature)}",
            details={"length": len(signature)},
        )
    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64]
    if v in (27, 28):
        v -= 27
    if v not in (0, 1):
        raise InvalidSignature(f"invalid signature 'v' value {signature[64]}")
    if not 0 < r < SECP256K1_N:
        raise InvalidSignature("invalid signature 'r' value")
    if not 0 < s <= SECP256K1_HALF_N:
        raise InvalidSignature("invalid signature 's' value")
    return r, s, v

def normalize_signature(r: int, s: int, recovery_id: int) -> bytes:
    """Fold s into the lower half of the curve order and emit r||s||v with v in {27, 28}."""
    if s > SECP256K1_HALF_N:
        s = SECP256K1_N - s
        recovery_id ^= 1
    return r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([27 + recovery_id])

def sign_digest(private_key: PrivateKeyLike, digest_32: bytes) -> bytes:
    # the digest is the message; it is not hashed again
    pk = PrivateKey(private_key_bytes(private_key))

    # coincurve uses libsecp256k1 RFC6979 deterministic nonce generation
    sig65 = pk.sign_recoverable(b32(digest_32), hasher=None)

    r = int.from_bytes(sig65[:32], "big")
    s = int.from_bytes(sig65[32:64], "big")
    return normalize_signature(r, s, sig65[64])

def recover_digest(digest_32: bytes, signature: bytes) -> str:
    """Recover the checksummed signer address.

    The result is an unauthenticated claim; callers compare it against the
    address they expect.
    """
    r, s, recovery_id = split_signature(signature)
    sig65 = r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([recovery_id])
    try:
        public_key = PublicKey.from_signature_and_message(sig65, b32(digest_32), hasher=None)
    except ValueError as e:
        raise InvalidSignature(f"public key recovery failed: {e}") from e
    return public_key_to_address(public_key)

def verify_digest(address: str, digest_32: bytes, signature: bytes) -> bool:
    try:
        recovered = recover_digest(digest_32, signature)
    except InvalidSignature:
        return False
    return recovered == to_checksum_address(address)
