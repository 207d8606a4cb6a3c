import pytest

from tez_sdk.errors import InvalidArgument
from tez_sdk.operation.intents import (
    ActivateAccount,
    Ballot,
    Delegation,
    Proposals,
    Reveal,
    Transaction,
    coerce_intents,
    intent_from_dict,
)


def test_to_content_skips_unset_fields():
    tx = Transaction(destination="tz1b", amount=10, fee=1500)
    assert tx.to_content() == {"kind": "transaction", "destination": "tz1b", "amount": 10, "fee": 1500}
    assert Delegation().to_content() == {"kind": "delegation"}
    assert Proposals(period=3, proposals=("Pa", "Pb")).to_content() == {
        "kind": "proposals",
        "period": 3,
        "proposals": ["Pa", "Pb"],
    }


def test_kind_classification():
    assert Reveal(public_key="edpk").fee_bearing
    assert not Reveal(public_key="edpk").requires_reveal
    assert Transaction(destination="tz1b").requires_reveal
    act = ActivateAccount(pkh="tz1a", secret="00")
    assert not act.fee_bearing and not act.requires_reveal


def test_with_limits_returns_copy():
    tx = Transaction(destination="tz1b", gas_limit=1)
    tx2 = tx.with_limits(gas_limit=600, storage_limit=0)
    assert tx.gas_limit == 1
    assert (tx2.gas_limit, tx2.storage_limit) == (600, 0)


def test_intent_from_dict():
    op = intent_from_dict({"kind": "transaction", "destination": "tz1b", "amount": "5"})
    assert isinstance(op, Transaction) and op.amount == "5"
    p = intent_from_dict({"kind": "proposals", "period": 1, "proposals": ["Pa"]})
    assert p.proposals == ("Pa",)


@pytest.mark.parametrize(
    "bad",
    [
        {"kind": "endorsement", "level": 1},
        {"kind": "transaction", "destination": "tz1b", "colour": "red"},
        {"kind": "transaction"},
        {"destination": "tz1b"},
    ],
)
def test_intent_from_dict_rejects(bad):
    with pytest.raises(InvalidArgument):
        intent_from_dict(bad)


def test_ballot_vote_is_checked():
    Ballot(period=1, proposal="Pa", ballot="yay")
    with pytest.raises(InvalidArgument):
        Ballot(period=1, proposal="Pa", ballot="maybe")


def test_coerce_intents():
    tx = Transaction(destination="tz1b")
    assert coerce_intents(tx) == [tx]
    mixed = coerce_intents([tx, {"kind": "delegation", "delegate": "tz1d"}])
    assert isinstance(mixed[1], Delegation) and mixed[1].delegate == "tz1d"
    with pytest.raises(InvalidArgument):
        coerce_intents([])
    with pytest.raises(InvalidArgument):
        coerce_intents([42])
