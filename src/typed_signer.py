"""
Signing boundary for EIP-712 typed data.

A signer is anything with an ``address`` attribute and a
``sign_digest(digest) -> bytes`` method returning a 65-byte r||s||v
signature over the raw 32-byte digest. LocalSigner is the in-process
implementation backed by libsecp256k1.
"""

from typing import Any, Mapping, NamedTuple, Optional

from eip712_domain import DomainLike, domain_separator
from sign_core import PrivateKeyLike, address_of, eip712_digest, private_key_bytes, recover_digest, sign_digest
from typed_data import DOMAIN_TYPE_NAME, TypeSchema, primary_type, struct_hash


class TypedSignature(NamedTuple):
    signature: bytes
    digest: bytes


class LocalSigner:
    def __init__(self, private_key: PrivateKeyLike):
        self._key = private_key_bytes(private_key)
        self.address = address_of(self._key)

    def sign_digest(self, digest: bytes) -> bytes:
        return sign_digest(self._key, digest)

    def __repr__(self):
        return f"LocalSigner({self.address})"


def message_schema(types: Mapping) -> TypeSchema:
    # wallets send EIP712Domain alongside the message types; the domain type is fixed
    if isinstance(types, TypeSchema):
        return types
    return TypeSchema({name: fields for name, fields in types.items() if name != DOMAIN_TYPE_NAME})


def typed_data_digest(domain: DomainLike, types: Mapping, message: Mapping[str, Any],
                      primary: Optional[str] = None) -> bytes:
    schema = message_schema(types)
    primary = primary or primary_type(schema)
    return eip712_digest(domain_separator(domain), struct_hash(primary, schema, message))


def sign_typed_data(domain: DomainLike, types: Mapping, message: Mapping[str, Any], signer,
                    primary: Optional[str] = None) -> TypedSignature:
    digest = typed_data_digest(domain, types, message, primary)
    return TypedSignature(signer.sign_digest(digest), digest)


def recover_typed_data(domain: DomainLike, types: Mapping, message: Mapping[str, Any], signature: bytes,
                       primary: Optional[str] = None) -> str:
    return recover_digest(typed_data_digest(domain, types, message, primary), signature)
