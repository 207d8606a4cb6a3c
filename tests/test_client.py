import pytest

from conftest import MODERN, OP_HASH, PKH, PUBKEY, FakeCodec, FakeRpc, FakeSigner
from tez_sdk import SDKConfig, TezosClient
from tez_sdk.errors import ForgeValidationError, InvalidArgument, PrevalidationFailed
from tez_sdk.operation.intents import Transaction


def _client(rpc, signer=None, **cfg) -> TezosClient:
    codec = cfg.pop("codec", None)
    parser = cfg.pop("expression_parser", None)
    return TezosClient(SDKConfig(**cfg), signer=signer or FakeSigner(), rpc=rpc, codec=codec, expression_parser=parser)


def _injected_contents(rpc):
    ((_, preapplied),) = rpc.paths("/helpers/preapply/operations")
    return preapplied[0]["contents"]


@pytest.mark.asyncio
async def test_transfer_end_to_end(rpc):
    async with _client(rpc) as tz:
        res = await tz.transfer("tz1dest", 2_500_000)
    assert res.hash == OP_HASH
    assert rpc.closed

    (content,) = _injected_contents(rpc)
    assert content["kind"] == "transaction"
    assert content["destination"] == "tz1dest"
    assert content["amount"] == "2500000"
    assert content["fee"] == "1420"
    assert content["gas_limit"] == "10600"
    assert content["storage_limit"] == "300"
    assert content["counter"] == "8"
    assert content["source"] == PKH


@pytest.mark.asyncio
async def test_transfer_in_tez_with_reveal():
    rpc = FakeRpc(manager_key=None)
    tz = _client(rpc, use_mutez=False)
    await tz.transfer("tz1dest", 1.5, fee=0.002)
    reveal, tx = _injected_contents(rpc)
    assert reveal["kind"] == "reveal" and reveal["public_key"] == PUBKEY
    assert reveal["fee"] == "1420"
    assert tx["amount"] == "1500000"
    assert tx["fee"] == "2000"
    assert (reveal["counter"], tx["counter"]) == ("8", "9")


@pytest.mark.asyncio
async def test_batch_transfer_uses_consecutive_counters(rpc):
    tz = _client(rpc)
    await tz.batch_transfer([{"to": "tz1a", "amount": 1}, {"to": "tz1b", "amount": 2, "fee": 3000}])
    first, second = _injected_contents(rpc)
    assert (first["counter"], second["counter"]) == ("8", "9")
    assert second["fee"] == "3000"
    with pytest.raises(InvalidArgument):
        await tz.batch_transfer([])


@pytest.mark.asyncio
async def test_sequential_sends_never_reuse_counters(rpc):
    tz = _client(rpc)
    for _ in range(3):
        await tz.transfer("tz1dest", 1)
    counters = [body[0]["contents"][0]["counter"] for _p, body in rpc.paths("/preapply/operations")]
    assert counters == ["8", "9", "10"]


@pytest.mark.asyncio
async def test_failed_send_releases_counter():
    rpc = FakeRpc(
        preapply=[{"contents": [{"kind": "transaction", "metadata": {"operation_result": {"status": "failed"}}}]}]
    )
    tz = _client(rpc)
    with pytest.raises(PrevalidationFailed):
        await tz.transfer("tz1dest", 1)
    assert tz.counters.peek(PKH) == 7

    rpc.preapply = None
    await tz.transfer("tz1dest", 1)
    assert _counter_of_last_preapply(rpc) == "8"


def _counter_of_last_preapply(rpc):
    return rpc.paths("/preapply/operations")[-1][1][0]["contents"][0]["counter"]


@pytest.mark.asyncio
async def test_forge_mismatch_releases_counter():
    rpc = FakeRpc(remote_bytes="deadbeef")
    tz = _client(rpc, forge_mode="validate", codec=FakeCodec())
    with pytest.raises(ForgeValidationError):
        await tz.transfer("tz1dest", 1)
    assert tz.counters.peek(PKH) == 7
    assert not rpc.paths("/injection/operation")


@pytest.mark.asyncio
async def test_prepare_and_simulate(rpc):
    tz = _client(rpc)
    forged = await tz.prepare_operation(Transaction(destination="tz1dest", amount=5))
    assert forged.base_counter == 7
    assert forged.group.protocol == MODERN
    assert tz.counters.peek(PKH) == 8

    sim = await tz.simulate_operation({"kind": "transaction", "destination": "tz1dest", "amount": 5})
    assert sim["contents"][0]["metadata"]["operation_result"]["status"] == "applied"
    # simulation reads the next counter without consuming it
    ((_, payload),) = rpc.paths("/run_operation")
    assert payload["operation"]["contents"][0]["counter"] == "9"
    assert tz.counters.peek(PKH) == 8


@pytest.mark.asyncio
async def test_dry_run_limiter_replaces_limits(rpc):
    tz = _client(rpc, dry_run_limiter=True)
    await tz.transfer("tz1dest", 1)
    (content,) = _injected_contents(rpc)
    assert content["gas_limit"] == "600"
    assert content["storage_limit"] == "0"
    ((_, trial),) = rpc.paths("/run_operation")
    assert trial["operation"]["contents"][0]["gas_limit"] == "1040000"
    # the dry run consumed nothing
    assert content["counter"] == "8"


@pytest.mark.asyncio
async def test_activate_skips_signature_and_counter(rpc):
    signer = FakeSigner()
    tz = _client(rpc, signer=signer)
    res = await tz.activate("tz1act", "41f98b15efc63fa893d61d7d6eee4a2ce9427ac4")
    assert res.hash == OP_HASH
    assert signer.signed == []
    assert not rpc.paths("/counter")
    (content,) = _injected_contents(rpc)
    assert content == {"kind": "activate_account", "pkh": "tz1act", "secret": "41f98b15efc63fa893d61d7d6eee4a2ce9427ac4"}


@pytest.mark.asyncio
async def test_delegation_helpers(rpc):
    tz = _client(rpc)
    await tz.set_delegate("tz1baker")
    await tz.register_delegate()
    first, second = (body[0]["contents"][0] for _p, body in rpc.paths("/preapply/operations"))
    assert first["kind"] == "delegation" and first["delegate"] == "tz1baker"
    assert first["storage_limit"] == "0"
    assert second["delegate"] == PKH


@pytest.mark.asyncio
async def test_originate_requires_parser_for_text(rpc):
    tz = _client(rpc)
    with pytest.raises(InvalidArgument):
        await tz.originate(balance=0, code="parameter unit; storage unit; code {}", init="Unit")

    tz = _client(rpc, expression_parser=lambda src: {"parsed": src})
    await tz.originate(balance=0, code=[{"prim": "parameter"}], init="Unit")
    (content,) = _injected_contents(rpc)
    assert content["script"] == {"code": [{"prim": "parameter"}], "storage": {"parsed": "Unit"}}
    assert "manager_pubkey" not in content


@pytest.mark.asyncio
async def test_signer_swap_propagates(rpc):
    tz = _client(rpc)
    other = FakeSigner(pkh="tz1other")
    tz.signer = other
    assert tz.assembler.signer is other and tz.submitter.signer is other
    await tz.transfer("tz1dest", 1)
    assert other.signed
    assert rpc.paths("tz1other/counter")


@pytest.mark.asyncio
async def test_queries_hit_expected_paths(rpc):
    tz = _client(rpc, chain="NetXtest")
    rpc.responses.update(
        {
            "/chains/NetXtest/blocks/head/context/contracts/tz1a/balance": "42",
            "/chains/NetXtest/blocks/head/context/contracts/tz1a/delegate": None,
            "/chains/NetXtest/blocks/head/votes/current_quorum": 5800,
            "/chains/NetXtest/blocks/head/hash": "BLockA",
        }
    )
    assert await tz.get_balance("tz1a") == "42"
    assert await tz.get_delegate("tz1a") == ""
    assert await tz.get_current_quorum() == 5800
    assert await tz.get_head_hash() == "BLockA"


@pytest.mark.asyncio
async def test_script_helpers(rpc):
    tz = _client(rpc)
    base = "/chains/main/blocks/head/helpers/scripts"
    rpc.responses.update({f"{base}/{ep}": {"ok": ep} for ep in ("typecheck_code", "pack_data", "run_code", "trace_code")})

    await tz.typecheck_code([{"prim": "parameter"}])
    await tz.pack_data({"int": "1"}, {"prim": "int"})
    await tz.run_code([], 1, {"prim": "Unit"}, {"prim": "Unit"})
    out = await tz.run_code([], 1, {"prim": "Unit"}, {"prim": "Unit"}, trace=True)

    assert out == {"ok": "trace_code"}
    (_, tc), = rpc.paths("/typecheck_code")
    assert tc["gas"] == "10000"
    (_, packed), = rpc.paths("/pack_data")
    assert packed["gas"] == "4000000"
    (_, ran), = rpc.paths("/run_code")
    assert ran["amount"] == "1"


@pytest.mark.asyncio
async def test_await_operation(rpc):
    rpc.heads = [{"hash": "BLockB", "operations": [[], [], [], [{"hash": OP_HASH}]]}]
    assert await _client(rpc).await_operation(OP_HASH, 0.01, 1) == "BLockB"


@pytest.mark.asyncio
async def test_malformed_preapply_releases_counter():
    rpc = FakeRpc(preapply=["garbage"])
    tz = _client(rpc)
    with pytest.raises(PrevalidationFailed):
        await tz.transfer("tz1dest", 1)
    assert tz.counters.peek(PKH) == 7
