"""
EIP-712 typed structured data encoding.

A TypeSchema is the validated form of the JSON `types` object used by
eth_signTypedData:

    {"Ticket": [{"name": "eventName", "type": "string"},
                {"name": "price", "type": "uint256"}]}

Field order is the declared order and fixes the encoding order. The
schema is checked once when it is built: unknown types, duplicate fields
and cyclic references are rejected up front, so encoding only has to
check values.
"""

import re
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Set, Tuple

from errors import InvalidSchema, SchemaMismatch
from sign_core import addr, i256, keccak256, u256, utf8

DOMAIN_TYPE_NAME = "EIP712Domain"

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_ARRAY_SUFFIX = re.compile(r"^(.*)\[(\d*)\]$")


class Field(NamedTuple):
    name: str
    type: str


def _is_int_type(type_name: str, prefix: str) -> bool:
    if not type_name.startswith(prefix):
        return False
    bits = type_name[len(prefix):]
    return bits.isdigit() and not bits.startswith("0") and int(bits) % 8 == 0 and 8 <= int(bits) <= 256


def is_atomic(type_name: str) -> bool:
    if type_name in ("bool", "address", "string", "bytes"):
        return True
    if type_name.startswith("bytes"):
        size = type_name[5:]
        return size.isdigit() and not size.startswith("0") and 1 <= int(size) <= 32
    return _is_int_type(type_name, "uint") or _is_int_type(type_name, "int")


def split_array(type_name: str) -> Optional[Tuple[str, Optional[int]]]:
    """Return (element type, fixed length or None) for an array type, else None."""
    match = _ARRAY_SUFFIX.match(type_name)
    if match is None:
        return None
    element, length = match.groups()
    return element, int(length) if length else None


def base_type(type_name: str) -> str:
    while True:
        parts = split_array(type_name)
        if parts is None:
            return type_name
        type_name = parts[0]


class TypeSchema(Mapping):
    """Immutable, validated mapping of struct name to its ordered fields."""

    def __init__(self, types: Mapping) -> None:
        structs: Dict[str, Tuple[Field, ...]] = {}
        for type_name, fields in types.items():
            if not isinstance(type_name, str) or not _IDENTIFIER.match(type_name):
                raise InvalidSchema(f"invalid type name {type_name!r}")
            if type_name == DOMAIN_TYPE_NAME:
                raise InvalidSchema(f"{DOMAIN_TYPE_NAME} is fixed and cannot be redeclared")
            if is_atomic(type_name):
                raise InvalidSchema(f"{type_name} shadows an atomic type")
            structs[type_name] = tuple(self._parse_fields(type_name, fields))
        self._structs = structs

        for type_name, fields in structs.items():
            for field in fields:
                name = base_type(field.type)
                if not is_atomic(name) and name not in structs:
                    raise InvalidSchema(
                        f"{type_name}.{field.name}: unknown type {field.type!r}",
                        details={"type": type_name, "field": field.name},
                    )
        self._check_acyclic()
        self._type_hashes: Dict[str, bytes] = {}

    @staticmethod
    def _parse_fields(type_name: str, fields: Iterable) -> List[Field]:
        parsed = []
        seen = set()
        for raw in fields:
            try:
                field = Field(raw["name"], raw["type"])
            except (KeyError, TypeError):
                raise InvalidSchema(f"{type_name}: field descriptors need 'name' and 'type'")
            if not isinstance(field.name, str) or not _IDENTIFIER.match(field.name):
                raise InvalidSchema(f"{type_name}: invalid field name {field.name!r}")
            if not isinstance(field.type, str) or not _IDENTIFIER.match(base_type(field.type)):
                raise InvalidSchema(f"{type_name}.{field.name}: invalid type {field.type!r}")
            if field.name in seen:
                raise InvalidSchema(f"{type_name}: duplicate field {field.name!r}")
            seen.add(field.name)
            parsed.append(field)
        return parsed

    def _check_acyclic(self) -> None:
        done: Set[str] = set()

        def visit(type_name: str, trail: Tuple[str, ...]) -> None:
            if type_name in trail:
                cycle = " -> ".join(trail[trail.index(type_name):] + (type_name,))
                raise InvalidSchema(f"cyclic type reference: {cycle}")
            if type_name in done:
                return
            for ref in self.references(type_name):
                visit(ref, trail + (type_name,))
            done.add(type_name)

        for type_name in self._structs:
            visit(type_name, ())

    def references(self, type_name: str) -> List[str]:
        """Struct types referenced directly by the fields of type_name, in field order."""
        refs = []
        for field in self._structs[type_name]:
            name = base_type(field.type)
            if name in self._structs and name not in refs:
                refs.append(name)
        return refs

    def dependencies(self, type_name: str) -> Set[str]:
        """All struct types reachable from type_name, excluding itself."""
        found: Set[str] = set()
        pending = list(self.references(type_name))
        while pending:
            name = pending.pop()
            if name not in found:
                found.add(name)
                pending.extend(self.references(name))
        return found

    def type_hash(self, type_name: str) -> bytes:
        if type_name not in self._type_hashes:
            self._type_hashes[type_name] = keccak256(utf8(type_string(type_name, self)))
        return self._type_hashes[type_name]

    def __getitem__(self, type_name: str) -> Tuple[Field, ...]:
        return self._structs[type_name]

    def __iter__(self):
        return iter(self._structs)

    def __len__(self) -> int:
        return len(self._structs)

    def __repr__(self) -> str:
        return f"TypeSchema({', '.join(self._structs)})"


def as_schema(types) -> TypeSchema:
    return types if isinstance(types, TypeSchema) else TypeSchema(types)


def _require_struct(schema: TypeSchema, type_name: str) -> Tuple[Field, ...]:
    if type_name not in schema:
        raise InvalidSchema(f"unknown struct type {type_name!r}")
    return schema[type_name]


def _clause(type_name: str, schema: TypeSchema) -> str:
    members = ",".join(f"{field.type} {field.name}" for field in schema[type_name])
    return f"{type_name}({members})"


def type_string(type_name: str, types) -> str:
    """encodeType: the primary clause followed by referenced types sorted by name."""
    schema = as_schema(types)
    _require_struct(schema, type_name)
    deps = sorted(schema.dependencies(type_name))
    return "".join(_clause(name, schema) for name in [type_name] + deps)


def type_hash(type_name: str, types) -> bytes:
    schema = as_schema(types)
    _require_struct(schema, type_name)
    return schema.type_hash(type_name)


def _as_bytes(value: Any, path: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str) and value.startswith("0x"):
        try:
            return bytes.fromhex(value[2:])
        except ValueError:
            raise SchemaMismatch(path, f"invalid hex string {value!r}")
    raise SchemaMismatch(path, f"expected bytes, got {type(value).__name__}")


def _encode_atomic(field_type: str, value: Any, path: str) -> bytes:
    if field_type == "string":
        if not isinstance(value, str):
            raise SchemaMismatch(path, f"expected str, got {type(value).__name__}")
        return keccak256(utf8(value))
    if field_type == "bytes":
        return keccak256(_as_bytes(value, path))
    if field_type == "bool":
        if not isinstance(value, bool):
            raise SchemaMismatch(path, f"expected bool, got {type(value).__name__}")
        return u256(int(value))
    if field_type == "address":
        try:
            return addr(value)
        except ValueError as e:
            raise SchemaMismatch(path, str(e))
    if field_type.startswith("bytes"):
        size = int(field_type[5:])
        raw = _as_bytes(value, path)
        if len(raw) != size:
            raise SchemaMismatch(path, f"{field_type} needs exactly {size} bytes, got {len(raw)}")
        return raw.ljust(32, b"\x00")

    # uintN / intN
    if not isinstance(value, int) or isinstance(value, bool):
        raise SchemaMismatch(path, f"expected int for {field_type}, got {type(value).__name__}")
    if field_type.startswith("uint"):
        bits = int(field_type[4:])
        if not 0 <= value < (1 << bits):
            raise SchemaMismatch(path, f"{value} out of range for {field_type}")
        return u256(value)
    bits = int(field_type[3:])
    if not -(1 << (bits - 1)) <= value < (1 << (bits - 1)):
        raise SchemaMismatch(path, f"{value} out of range for {field_type}")
    return i256(value)


def _encode_value(schema: TypeSchema, field_type: str, value: Any, path: str) -> bytes:
    array = split_array(field_type)
    if array is not None:
        element_type, length = array
        if not isinstance(value, (list, tuple)):
            raise SchemaMismatch(path, f"expected list for {field_type}, got {type(value).__name__}")
        if length is not None and len(value) != length:
            raise SchemaMismatch(path, f"{field_type} needs {length} elements, got {len(value)}")
        return keccak256(b"".join(
            _encode_value(schema, element_type, item, f"{path}[{i}]")
            for i, item in enumerate(value)
        ))
    if field_type in schema:
        return _struct_hash(schema, field_type, value, path)
    return _encode_atomic(field_type, value, path)


def encode_value(field_type: str, value: Any, types=None) -> bytes:
    """Encode one value to its 32-byte EIP-712 word.

    `types` is only needed when field_type is (or contains) a struct type.
    """
    schema = as_schema(types or {})
    if not is_atomic(base_type(field_type)) and base_type(field_type) not in schema:
        raise InvalidSchema(f"unknown type {field_type!r}")
    return _encode_value(schema, field_type, value, field_type)


def encode_data(type_name: str, types, value: Mapping) -> bytes:
    """typeHash || enc(field1) || enc(field2) ..., in declared field order."""
    schema = as_schema(types)
    _require_struct(schema, type_name)
    return _encode_data(schema, type_name, value, type_name)


def _encode_data(schema: TypeSchema, type_name: str, value: Any, path: str) -> bytes:
    if not isinstance(value, Mapping):
        raise SchemaMismatch(path, f"expected a mapping for {type_name}, got {type(value).__name__}")
    fields = schema[type_name]
    declared = {field.name for field in fields}
    extra = sorted(set(value) - declared)
    if extra:
        raise SchemaMismatch(path, f"undeclared field(s) {', '.join(map(str, extra))} for {type_name}")

    words = [schema.type_hash(type_name)]
    for field in fields:
        if field.name not in value:
            raise SchemaMismatch(f"{path}.{field.name}", f"missing field of type {field.type}")
        words.append(_encode_value(schema, field.type, value[field.name], f"{path}.{field.name}"))
    return b"".join(words)


def _struct_hash(schema: TypeSchema, type_name: str, value: Any, path: str) -> bytes:
    return keccak256(_encode_data(schema, type_name, value, path))


def struct_hash(type_name: str, types, value: Mapping) -> bytes:
    schema = as_schema(types)
    _require_struct(schema, type_name)
    return _struct_hash(schema, type_name, value, type_name)


def primary_type(types) -> str:
    """The one struct type no other type refers to."""
    schema = as_schema(types)
    referenced = set()
    for type_name in schema:
        referenced.update(schema.references(type_name))
    roots = [name for name in schema if name not in referenced]
    if len(roots) != 1:
        raise InvalidSchema(f"ambiguous primary type, candidates: {roots}")
    return roots[0]
