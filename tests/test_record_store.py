"""
Pytest tests for the record store: default records, persistence through the
vault, cache coherency on failed saves, and corrupted records.
"""

from __future__ import annotations

import json
import os
from decimal import Decimal

import pytest

TOKEN_X = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"


def _buy(sol="1.0", tokens="100"):
    from tradebot_agent.store.models import TradeEvent, TradeKind

    return TradeEvent.create(TradeKind.BUY, TOKEN_X, "XTK", 6, sol, tokens)


def test_new_user_gets_persisted_default(file_store):
    """Unknown user: default record (no wallet, 50/50 bps, fee 0, idle) is written to disk."""
    record = file_store.load("42")
    assert record.wallet is None
    assert record.settings.buy_slippage_bps == 50
    assert record.settings.sell_slippage_bps == 50
    assert record.settings.priority_fee == 0
    assert record.transactions == []
    assert record.state is None
    assert record.context == {}
    assert file_store.path_for("42").name == "user_42.vault"
    assert file_store.path_for("42").exists()


def test_file_is_sealed_and_private(file_store, codec):
    """On disk the record is an iv:cipher blob with owner-only permissions."""
    file_store.load("42")
    path = file_store.path_for("42")
    blob = path.read_text(encoding="utf-8")
    assert ":" in blob
    assert "slippageBuy" not in blob
    payload = json.loads(codec.open(blob))
    assert payload["settings"] == {"slippageBuy": 50, "slippageSell": 50, "priorityFee": 0}
    if os.name != "nt":
        assert (path.stat().st_mode & 0o777) == 0o600


def test_round_trip_through_disk(file_store, keypair):
    """Wallet, settings, ledger and conversation survive a cache eviction."""
    from tradebot_agent.conversation.states import AwaitingCustomBuyAmount
    from tradebot_agent.store.models import Wallet

    record = file_store.load("7")
    record.wallet = Wallet.from_keypair(keypair)
    record.transactions.append(_buy())
    record.conversation = AwaitingCustomBuyAmount(target_token_address=TOKEN_X)
    assert file_store.save("7", record)

    file_store.evict("7")
    loaded = file_store.load("7")
    assert loaded.wallet is not None
    assert loaded.wallet.public_key == str(keypair.pubkey())
    assert loaded.wallet.keypair.pubkey() == keypair.pubkey()
    assert loaded.transactions == record.transactions
    assert loaded.transactions[0].counter_asset_amount == Decimal("1.0")
    assert loaded.state == "awaiting_custom_buy_amount"
    assert loaded.context == {"targetTokenAddress": TOKEN_X}


def test_load_returns_working_copy(memory_store):
    """Mutating a loaded record without saving leaves the cache untouched."""
    record = memory_store.load("u")
    record.transactions.append(_buy())
    record.settings.priority_fee = 9
    again = memory_store.load("u")
    assert again.transactions == []
    assert again.settings.priority_fee == 0


def test_failed_save_keeps_cache_and_disk(file_store, monkeypatch):
    """A failed write returns False; cache and disk both keep the prior record."""
    from tradebot_agent.core.exceptions import PersistenceError

    record = file_store.load("9")
    record.transactions.append(_buy())
    assert file_store.save("9", record)

    def broken_write(path, blob):
        raise PersistenceError("disk full")

    monkeypatch.setattr(file_store, "_write_blob", broken_write)
    mutated = file_store.load("9")
    mutated.transactions.append(_buy("2.0", "50"))
    assert file_store.save("9", mutated) is False

    assert len(file_store.load("9").transactions) == 1
    assert len(file_store.load("9", bypass_cache=True).transactions) == 1


def test_failed_save_memory_store(memory_store):
    memory_store.load("u")
    memory_store.fail_writes = True
    record = memory_store.load("u")
    record.settings.priority_fee = 7
    assert memory_store.save("u", record) is False
    assert memory_store.load("u").settings.priority_fee == 0


def test_invalid_private_key_drops_wallet_only(file_store, codec):
    """A stored key that cannot become a keypair: wallet absent, ledger intact."""
    payload = {
        "version": 1,
        "wallet": {"publicKey": "whatever", "privateKey": "not-base58!!0OIl"},
        "settings": {"slippageBuy": 120, "slippageSell": 80, "priorityFee": 3},
        "transactions": [_buy().to_dict()],
        "state": None,
        "context": {},
    }
    path = file_store.path_for("5")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(codec.seal(json.dumps(payload).encode("utf-8")), encoding="utf-8")

    record = file_store.load("5")
    assert record.wallet is None
    assert len(record.transactions) == 1
    assert record.settings.buy_slippage_bps == 120
    assert record.settings.priority_fee == 3


def test_corrupted_vault_is_not_a_new_user(file_store):
    """Tampered file raises DecryptionError instead of silently resetting the user."""
    from tradebot_agent.core.exceptions import DecryptionError

    file_store.load("3")
    file_store.evict("3")
    path = file_store.path_for("3")
    iv_hex, _, cipher_hex = path.read_text(encoding="utf-8").partition(":")
    flipped = ("1" if cipher_hex[0] == "0" else "0") + cipher_hex[1:]
    path.write_text(iv_hex + ":" + flipped, encoding="utf-8")

    with pytest.raises(DecryptionError):
        file_store.load("3")
    assert file_store.load_persisted("nobody") is None


def test_legacy_float_amounts_and_unknown_state(memory_store):
    """Old records with JSON floats load as exact Decimals; an unknown state tag becomes idle."""
    memory_store._payloads["old"] = json.dumps(
        {
            "wallet": None,
            "settings": {},
            "transactions": [
                {
                    "type": "buy",
                    "tokenAddress": TOKEN_X,
                    "tokenSymbol": "XTK",
                    "tokenDecimals": 6,
                    "solAmount": 0.1,
                    "tokenAmount": 1234.5,
                    "timestamp": "2024-01-01T00:00:00Z",
                }
            ],
            "state": "awaiting_something_removed",
            "context": {"foo": 1},
        }
    )
    record = memory_store.load("old")
    assert record.transactions[0].counter_asset_amount == Decimal("0.1")
    assert record.transactions[0].token_amount == Decimal("1234.5")
    assert record.state is None
    assert record.context == {}


def test_unreadable_ledger_amount_is_decryption_error(memory_store):
    from tradebot_agent.core.exceptions import DecryptionError

    memory_store._payloads["u9"] = json.dumps(
        {
            "wallet": None,
            "settings": {},
            "transactions": [
                {"type": "buy", "tokenAddress": TOKEN_X, "solAmount": "abc", "tokenAmount": "5"}
            ],
        }
    )
    with pytest.raises(DecryptionError):
        memory_store.load("u9")
    assert not memory_store.is_cached("u9")


@pytest.mark.parametrize("bad", ["", "../etc", "a/b", "x" * 65])
def test_rejects_unsafe_user_ids(memory_store, bad):
    with pytest.raises(ValueError):
        memory_store.load(bad)
