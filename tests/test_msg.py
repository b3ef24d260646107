import json
import pytest

from tokenledger.core.models import (
    MAX_UINT128, MessageParseError, InitializeMsg, ExecuteMsg, Transfer, Approve, TransferFrom, Burn,
    QueryMsg, Balance, Allowance, TokenInfo, BalanceResponse, TokenInfoResponse, Constants, Response,
)


def test_parse_execute_variants():
    assert ExecuteMsg.from_dict({"transfer": {"recipient": "bob", "amount": "10"}}) == \
        Transfer(recipient="bob", amount=10)
    assert ExecuteMsg.from_dict({"approve": {"spender": "bob", "amount": 5}}) == \
        Approve(spender="bob", amount=5)
    assert ExecuteMsg.from_dict(
        {"transfer_from": {"owner": "alice", "recipient": "carol", "amount": "0"}}
    ) == TransferFrom(owner="alice", recipient="carol", amount=0)
    assert ExecuteMsg.from_dict({"burn": {"amount": str(MAX_UINT128)}}) == Burn(amount=MAX_UINT128)


def test_parse_query_variants():
    assert QueryMsg.from_dict({"balance": {"address": "alice"}}) == Balance(address="alice")
    assert QueryMsg.from_dict({"allowance": {"owner": "a", "spender": "b"}}) == Allowance(owner="a", spender="b")
    assert isinstance(QueryMsg.from_dict({"token_info": {}}), TokenInfo)
    assert isinstance(QueryMsg.from_dict({"token_info": None}), TokenInfo)


@pytest.mark.parametrize("amount", ["-1", "1e3", "", " 5", -1, MAX_UINT128 + 1, True, "１２"])
def test_invalid_amounts_rejected(amount):
    with pytest.raises(MessageParseError):
        ExecuteMsg.from_dict({"burn": {"amount": amount}})


@pytest.mark.parametrize("raw", [
    {},
    {"transfer": {"recipient": "bob", "amount": 1}, "burn": {"amount": 1}},
    {"mint": {"amount": 1}},
    {"transfer": {"amount": 1}},
    ["transfer"],
])
def test_malformed_messages_rejected(raw):
    with pytest.raises(MessageParseError):
        ExecuteMsg.from_dict(raw)


def test_unknown_query_rejected():
    with pytest.raises(MessageParseError):
        QueryMsg.from_dict({"transfer": {"recipient": "bob", "amount": 1}})


def test_amounts_serialize_as_strings():
    msg = TransferFrom(owner="alice", recipient="carol", amount=2**100)
    assert msg.to_dict() == {
        "transfer_from": {"owner": "alice", "recipient": "carol", "amount": str(2**100)}
    }
    assert ExecuteMsg.from_dict(msg.to_dict()) == msg
    assert json.loads(BalanceResponse(balance=7).model_dump_json()) == {"balance": "7"}


def test_initialize_msg_from_file(tmp_path):
    path = tmp_path / "genesis.json"
    path.write_text(json.dumps({
        "name": "Test Token",
        "symbol": "TST",
        "decimals": 19,
        "initial_balances": [{"address": "alice", "amount": "100"}, {"address": "bob", "amount": 50}],
    }))

    msg = InitializeMsg.from_file(path)

    # Decimal bounds beyond 18 are the ledger's to reject, not the parser's
    assert msg.decimals == 19
    assert [(b.address, b.amount) for b in msg.initial_balances] == [("alice", 100), ("bob", 50)]


def test_initialize_msg_from_file_rejects_bad_shape(tmp_path):
    path = tmp_path / "genesis.json"
    path.write_text(json.dumps({"name": "Test Token", "symbol": "TST", "decimals": 256}))
    with pytest.raises(MessageParseError):
        InitializeMsg.from_file(path)


def test_constants_roundtrip_bytes():
    constants = Constants(name="Test Token", symbol="TST", decimals=6)
    assert json.loads(constants.to_bytes()) == {"name": "Test Token", "symbol": "TST", "decimals": 6}
    assert Constants.from_bytes(constants.to_bytes()) == constants


def test_response_attributes_keep_order():
    response = Response().add_attribute("action", "burn").add_attribute("amount", 5)
    assert [a.key for a in response.attributes] == ["action", "amount"]
    assert response.get("amount") == "5"
    assert response.get("missing") is None
    assert response.to_dict() == {"action": "burn", "amount": "5"}


def test_token_info_response_json():
    info = TokenInfoResponse(name="Test Token", symbol="TST", decimals=6, total_supply=150)
    assert json.loads(info.model_dump_json())["total_supply"] == "150"
