import pytest
from eth_account.messages import encode_typed_data

from eip712_domain import (
    DOMAIN_TYPEHASH,
    CachedDomainSeparator,
    Domain,
    domain_separator,
    domain_type_string,
)
from errors import SchemaMismatch
from sign_core import addr, keccak256, u256

CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
DOMAIN = Domain("TicketGenerator", "1", 31337, CONTRACT)


def test_ether_mail_domain_vector():
    domain = Domain("Ether Mail", "1", 1, "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC")
    assert domain_separator(domain).hex() == \
        "f2cee375fa42b42143804025fc449deafd50cc031ca257e0b194a650a912090f"


def test_separator_layout():
    expected = keccak256(
        DOMAIN_TYPEHASH +
        keccak256(b"TicketGenerator") +
        keccak256(b"1") +
        u256(31337) +
        addr(CONTRACT)
    )
    assert domain_separator(DOMAIN) == expected
    assert domain_separator(DOMAIN.to_dict()) == expected


@pytest.mark.parametrize("change", [
    {"name": "TicketGenerator2"},
    {"version": "2"},
    {"chain_id": 1},
    {"verifying_contract": "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"},
])
def test_every_field_separates(change):
    assert domain_separator(DOMAIN._replace(**change)) != domain_separator(DOMAIN)


def test_salted_domain():
    salted = DOMAIN._replace(salt=b"\x07" * 32)
    assert domain_type_string(salted).endswith(",bytes32 salt)")
    assert domain_type_string(DOMAIN) == \
        "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
    assert domain_separator(salted) != domain_separator(DOMAIN)
    signable = encode_typed_data(salted.to_dict(), {"T": [{"name": "x", "type": "uint256"}]}, {"x": 1})
    assert domain_separator(salted) == bytes(signable.header)


def test_matches_eth_account():
    signable = encode_typed_data(DOMAIN.to_dict(), {"T": [{"name": "x", "type": "uint256"}]}, {"x": 1})
    assert domain_separator(DOMAIN) == bytes(signable.header)


@pytest.mark.parametrize("bad", [
    {"name": "a", "version": "1", "chainId": 1},
    {"name": "a", "version": "1", "chainId": 1, "verifyingContract": CONTRACT, "extra": 1},
    {"name": "a", "version": "1", "chainId": "1", "verifyingContract": CONTRACT},
    {"name": "a", "version": "1", "chainId": 1, "verifyingContract": "0xnope"},
])
def test_bad_domains(bad):
    with pytest.raises(SchemaMismatch):
        domain_separator(bad)


def test_cached_separator_follows_environment():
    cached = CachedDomainSeparator("TicketGenerator", "1")
    first = cached.get(31337, CONTRACT)
    assert first == domain_separator(DOMAIN)
    assert cached.get(31337, CONTRACT) is first
    assert cached.get(1, CONTRACT) == domain_separator(DOMAIN._replace(chain_id=1))


@pytest.mark.parametrize("good,bad", [(7, 7.0), (1, True)])
def test_non_int_chain_id_rejected_after_int_is_cached(good, bad):
    domain_separator(DOMAIN._replace(chain_id=good))
    with pytest.raises(SchemaMismatch):
        domain_separator(DOMAIN._replace(chain_id=bad))


def test_cached_separator_rejects_float_chain_id():
    cached = CachedDomainSeparator("TicketGenerator", "1")
    cached.get(7, CONTRACT)
    with pytest.raises(SchemaMismatch):
        cached.get(7.0, CONTRACT)
