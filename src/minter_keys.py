# ============================================================================
# MODULE: minter_keys.py
# PURPOSE: Locate the voucher minter's private key; one-time keyring setup.
# ============================================================================

import os
import sys

import keyring
from eth_account import Account

KEYRING_SERVICE = "lazymint"
KEYRING_USERNAME = "minter_key"
ENV_VAR = "MINTER_PRIVATE_KEY"


class MissingMinterKey(RuntimeError):
    pass


def load_private_key() -> str:
    """
    MINTER_PRIVATE_KEY wins; otherwise the key stored by bootstrap() in the
    system keyring.
    """
    private_key = os.getenv(ENV_VAR)
    if private_key:
        return private_key
    private_key = keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME)
    if not private_key:
        raise MissingMinterKey(
            f"No minter key: set {ENV_VAR} or run `python -m minter_keys` once."
        )
    return private_key


def bootstrap() -> str:
    """
    One-time setup: move the key from the environment into the system
    keyring (encrypted, per-user). Returns the minter address.
    """
    private_key = os.getenv(ENV_VAR)
    if not private_key:
        raise MissingMinterKey(f"Set {ENV_VAR} for the bootstrap run: export {ENV_VAR}=0x...")

    account = Account.from_key(private_key)
    keyring.set_password(KEYRING_SERVICE, KEYRING_USERNAME, private_key)
    return account.address


if __name__ == "__main__":
    try:
        address = bootstrap()
    except Exception as e:
        print(f"[FATAL] Minter key bootstrap failed: {e}")
        sys.exit(1)
    print(f"[OK] Minter key for {address} stored in system keyring")
    print(f"\nNext steps:")
    print(f"  1. unset {ENV_VAR}")
    print(f"  2. python -m voucher_issuer <tokenId> <uri>")
