"""
Error taxonomy for typed-data signing and voucher redemption.

Every error carries a machine-readable kind and a human-readable reason.
The reason mirrors what a verifying contract would revert with, so
InvalidSigner (a custom error) and AlreadyMinted (a string revert) stay
distinguishable to callers and to the audit log.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    ERROR = "Eip712Error"
    INVALID_SCHEMA = "InvalidSchema"
    SCHEMA_MISMATCH = "SchemaMismatch"
    INVALID_SIGNATURE = "InvalidSignature"
    INVALID_SIGNER = "InvalidSigner"
    ALREADY_MINTED = "AlreadyMinted"
    INVALID_TOKEN = "InvalidToken"


class Eip712Error(Exception):
    """Base class for every error raised by this package."""

    kind: ErrorKind = ErrorKind.ERROR
    reason: str = "Eip712Error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "error": self.kind.value,
            "reason": self.reason,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class InvalidSchema(Eip712Error):
    """A type schema was rejected at registration time."""

    kind = ErrorKind.INVALID_SCHEMA
    reason = "InvalidSchema"


class SchemaMismatch(Eip712Error):
    """A value does not match the type declared for it."""

    kind = ErrorKind.SCHEMA_MISMATCH
    reason = "SchemaMismatch"

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}", details={"field": path})
        self.path = path


class InvalidSignature(Eip712Error):
    """Signature bytes are malformed or no public key can be recovered."""

    kind = ErrorKind.INVALID_SIGNATURE
    reason = "ECDSA: invalid signature"


class InvalidSigner(Eip712Error):
    """The signature is well-formed but the signer has no authority."""

    kind = ErrorKind.INVALID_SIGNER
    reason = "InvalidSigner"

    def __init__(self, signer: str, expected: str) -> None:
        super().__init__(
            f"signer {signer} is not the authorized minter",
            details={"signer": signer, "expected": expected},
        )
        self.signer = signer


class AlreadyMinted(Eip712Error):
    """The token id was consumed by an earlier redemption."""

    kind = ErrorKind.ALREADY_MINTED
    reason = "ERC721: token already minted"

    def __init__(self, token_id: int) -> None:
        super().__init__(self.reason, details={"token_id": token_id})
        self.token_id = token_id


class InvalidToken(Eip712Error):
    """ERC-721 storage rejected a lookup or mint argument."""

    kind = ErrorKind.INVALID_TOKEN

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(reason, details=details)
        self.reason = reason
