"""Account construction and environment loading."""

from __future__ import annotations

import pytest
from eth_account import Account as EthAccount
from eth_keys import keys

from conftest import TEST_PRIVATE_KEY
from ghosteth.errors import AccountError, ConfigurationError
from ghosteth.sigil.accounts import Account, find_account, load_accounts
from ghosteth.utils import hex_to_bytes


def test_address_matches_eth_account() -> None:
    account = Account.from_private_key(TEST_PRIVATE_KEY, chain_id=1)
    assert account.address == EthAccount.from_key(TEST_PRIVATE_KEY).address
    assert account.can_sign
    assert account.private_key == TEST_PRIVATE_KEY


def test_private_key_without_prefix() -> None:
    account = Account.from_private_key(TEST_PRIVATE_KEY[2:], chain_id=1)
    assert account.address == EthAccount.from_key(TEST_PRIVATE_KEY).address


def test_repr_hides_private_key() -> None:
    account = Account.from_private_key(TEST_PRIVATE_KEY, chain_id=1, label="main")
    assert TEST_PRIVATE_KEY[2:] not in repr(account)
    assert "main" in repr(account)


@pytest.mark.parametrize("bad", ["", "0x1234", "zz" * 32])
def test_invalid_private_key(bad: str) -> None:
    with pytest.raises(AccountError, match="invalid private key"):
        Account.from_private_key(bad, chain_id=1)


class TestPublicKey:
    @pytest.fixture()
    def pub(self) -> keys.PublicKey:
        return keys.PrivateKey(hex_to_bytes(TEST_PRIVATE_KEY)).public_key

    def test_raw_encoding(self, pub: keys.PublicKey) -> None:
        account = Account.from_public_key(pub.to_hex(), chain_id=1)
        assert account.address == pub.to_checksum_address()
        assert account.private_key is None
        assert not account.can_sign

    def test_uncompressed_prefix(self, pub: keys.PublicKey) -> None:
        encoded = "0x04" + pub.to_bytes().hex()
        assert Account.from_public_key(encoded, chain_id=1).address == pub.to_checksum_address()

    def test_compressed_encoding(self, pub: keys.PublicKey) -> None:
        encoded = "0x" + pub.to_compressed_bytes().hex()
        account = Account.from_public_key(encoded, chain_id=1)
        assert account.address == pub.to_checksum_address()
        assert account.public_key == pub.to_hex()

    def test_invalid_public_key(self) -> None:
        with pytest.raises(AccountError, match="invalid public key"):
            Account.from_public_key("0x1234", chain_id=1)

    def test_read_only_account_cannot_sign(self, pub: keys.PublicKey) -> None:
        account = Account.from_public_key(pub.to_hex(), chain_id=1)
        with pytest.raises(AccountError, match="private key is not set"):
            account.require_signing()


def test_generate() -> None:
    account = Account.generate(chain_id=5, label="fresh")
    assert account.can_sign
    assert account.chain_id == 5
    assert EthAccount.from_key(account.private_key).address == account.address


def test_require_signing_chain_id() -> None:
    account = Account.from_private_key(TEST_PRIVATE_KEY, chain_id=0)
    with pytest.raises(AccountError, match="chain ID is not set"):
        account.require_signing()


class TestLoadAccounts:
    def test_private_and_public_keys(self) -> None:
        pub = keys.PrivateKey(hex_to_bytes(TEST_PRIVATE_KEY)).public_key
        env = {
            "ETH_ACCOUNTS": "main, watch",
            "ETH_ACCOUNT_MAIN_PRIVATE_KEY": TEST_PRIVATE_KEY,
            "ETH_ACCOUNT_WATCH_PUBLIC_KEY": pub.to_hex(),
        }
        main, watch = load_accounts(8453, env)
        assert (main.label, watch.label) == ("main", "watch")
        assert main.can_sign and not watch.can_sign
        assert main.chain_id == watch.chain_id == 8453
        assert main.address == watch.address

    def test_private_key_wins(self) -> None:
        env = {
            "ETH_ACCOUNTS": "main",
            "ETH_ACCOUNT_MAIN_PRIVATE_KEY": TEST_PRIVATE_KEY,
            "ETH_ACCOUNT_MAIN_PUBLIC_KEY": "0xdeadbeef",
        }
        (account,) = load_accounts(1, env)
        assert account.can_sign

    def test_missing_key(self) -> None:
        with pytest.raises(ConfigurationError, match=r"account\[ghost\]"):
            load_accounts(1, {"ETH_ACCOUNTS": "ghost"})

    def test_bad_key_becomes_configuration_error(self) -> None:
        env = {"ETH_ACCOUNTS": "main", "ETH_ACCOUNT_MAIN_PRIVATE_KEY": "0x1234"}
        with pytest.raises(ConfigurationError, match="invalid private key"):
            load_accounts(1, env)

    @pytest.mark.parametrize("value", ["", " , ,"])
    def test_empty_list(self, value: str) -> None:
        with pytest.raises(ConfigurationError, match="ETH_ACCOUNTS"):
            load_accounts(1, {"ETH_ACCOUNTS": value})


class TestFindAccount:
    @pytest.fixture()
    def accounts(self) -> list[Account]:
        return [
            Account.from_private_key(TEST_PRIVATE_KEY, chain_id=1, label="main"),
            Account.generate(chain_id=1, label="Spare"),
        ]

    def test_default_is_first(self, accounts) -> None:
        assert find_account(accounts, None) is accounts[0]

    def test_label_is_case_insensitive(self, accounts) -> None:
        assert find_account(accounts, "spare") is accounts[1]

    def test_unknown_label(self, accounts) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            find_account(accounts, "nobody")

    def test_no_accounts(self) -> None:
        with pytest.raises(ConfigurationError):
            find_account([], None)
