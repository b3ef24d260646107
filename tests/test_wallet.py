import pytest
from pathlib import Path
from tokenledger.wallet import Wallet, wallet_path_for
from tokenledger.core.config import config
import json
import base64

def test_wallet_generate_and_save(tmp_path):
    wallet = Wallet.generate()
    path = tmp_path / "wallet.json"
    wallet.save(str(path))

    loaded = Wallet.load(str(path))
    assert loaded.get_address() == wallet.get_address()

def test_wallet_address_is_base64_verify_key():
    wallet = Wallet.generate()
    assert base64.b64decode(wallet.get_address()) == wallet.verify_key.encode()

def test_wallet_with_config(monkeypatch, tmp_path):
    """Test wallet using config for paths."""
    test_wallet_path = tmp_path / "config_wallet.json"
    monkeypatch.setattr(config, "wallet_path", test_wallet_path)

    wallet = Wallet.generate()
    wallet.save()  # Should use config path

    assert test_wallet_path.exists()

    loaded_wallet = Wallet.load()  # Should use config path
    assert loaded_wallet.get_address() == wallet.get_address()

    with open(test_wallet_path, "r") as f:
        data = json.load(f)

    assert data["address"] == wallet.get_address()
    # Should be valid base64
    assert base64.b64decode(data["private_key"])

def test_wallet_path_resolution(tmp_path):
    default = tmp_path / "wallets" / "wallet.json"
    assert wallet_path_for(default=default) == default
    assert wallet_path_for(name="alice", default=default) == tmp_path / "wallets" / "alice.json"
    assert wallet_path_for(name="alice", path=tmp_path / "x.json", default=default) == tmp_path / "x.json"
    assert wallet_path_for(path="~/w.json") == Path.home() / "w.json"
