import json
import logging
from decimal import Decimal

import pytest
import requests

from cosmoscope.pipeline import run as pipeline_run
from cosmoscope.settings import CosmoscopeSettings, CosmosNetwork, OutputFormat
from cosmoscope.state import AppState

ADDRESS = "abcdef1qpzry9x8gf2tvdw0s3jn54khce6mua7lmqqqxw"
ADDRESS_HEX = "00443214c74254b635cf84653a56d7c675be77df"
REGISTRY = "https://registry.test"
REST = "https://rest.test"


@pytest.fixture
def settings():
    return CosmoscopeSettings(
        cosmos_networks=[
            CosmosNetwork(name="testchain", prefix="abcdef"),
            CosmosNetwork(name="ghostchain", prefix="ghost"),
        ],
        cosmos_addresses=[ADDRESS],
        fixed_balances=[{"network": "exchange", "token": "TEST", "amount": "10"}],
        registry_url=REGISTRY,
        coingecko_url="https://prices.test",
        coingecko_ids={"TEST": "test-coin"},
        output_format=OutputFormat.JSON,
    )


@pytest.fixture
def fake_network(monkeypatch, make_response):
    """Route ``requests.get`` to canned registry, gateway and price responses."""
    calls: list[str] = []
    routes = {
        f"{REGISTRY}/testchain/chain.json": make_response(
            200,
            {
                "chain_name": "testchain",
                "bech32_prefix": "abcdef",
                "apis": {"rest": [{"address": "https://dead.test"}, {"address": f"{REST}/"}]},
            },
        ),
        f"{REGISTRY}/testchain/assetlist.json": make_response(404),
        f"{REGISTRY}/ghostchain/chain.json": make_response(404),
        f"{REST}/cosmos/base/tendermint/v1beta1/node_info": make_response(200, {}),
        f"{REST}/cosmos/bank/v1beta1/balances/{ADDRESS}": make_response(
            200, {"balances": [{"denom": "utest", "amount": "1000000"}]}
        ),
        f"{REST}/cosmos/staking/v1beta1/delegations/{ADDRESS}": make_response(
            200, {"delegation_responses": [{"balance": {"denom": "utest", "amount": "2000000"}}]}
        ),
        f"{REST}/cosmos/distribution/v1beta1/delegators/{ADDRESS}/rewards": make_response(
            200,
            {
                "rewards": [
                    {"validator_address": "v1", "reward": [{"denom": "utest", "amount": "300000"}]},
                    {"validator_address": "v2", "reward": [{"denom": "utest", "amount": "200000"}]},
                ]
            },
        ),
        "https://prices.test/simple/price": make_response(200, {"test-coin": {"usd": 2.0}}),
    }

    def fake_get(url, params=None, timeout=None):
        calls.append(url)
        if url.startswith("https://dead.test"):
            raise requests.ConnectionError("connection refused")
        return routes[url]

    monkeypatch.setattr(requests, "get", fake_get)
    return calls


@pytest.mark.asyncio
async def test_collect_report_end_to_end(settings, fake_network):
    state = AppState(settings=settings, logger=logging.getLogger("test"))

    records = await pipeline_run.collect_report(state)

    by_label = {record.network: record for record in records}
    assert set(by_label) == {"exchange", "testchain-bank", "testchain-staking", "testchain-rewards"}

    bank = by_label["testchain-bank"]
    assert (bank.token, bank.amount, bank.decimals) == ("TEST", Decimal("1"), 6)
    assert bank.account == ADDRESS
    assert bank.hex_address == ADDRESS_HEX
    assert bank.usd_value == pytest.approx(2.0)

    assert by_label["testchain-staking"].amount == Decimal("2")
    assert by_label["testchain-rewards"].amount == Decimal("0.5")
    assert by_label["exchange"].usd_value == pytest.approx(20.0)

    assert fake_network.count(f"{REST}/cosmos/staking/v1beta1/delegations/{ADDRESS}") == 1
    assert fake_network.count(f"{REST}/cosmos/distribution/v1beta1/delegators/{ADDRESS}/rewards") == 1
    assert not any(url.startswith(f"{REGISTRY}/ghostchain/assetlist") for url in fake_network)


@pytest.mark.asyncio
async def test_run_report_prints_json(settings, fake_network, capsys):
    state = AppState(settings=settings, logger=logging.getLogger("test"))

    records = await pipeline_run.run_report(state)

    data = json.loads(capsys.readouterr().out)
    assert len(data["balances"]) == len(records) == 4
    assert Decimal(data["summary"]["by_token"]["TEST"]["amount"]) == Decimal("13.5")


def test_build_pairs_is_network_address_product():
    settings = CosmoscopeSettings(
        cosmos_networks=[
            CosmosNetwork(name="osmosis", prefix="osmo"),
            CosmosNetwork(name="juno", prefix="juno"),
        ],
        cosmos_addresses=["a", "b"],
    )

    pairs = pipeline_run.build_pairs(settings)

    assert [(network.name, address) for network, address in pairs] == [
        ("osmosis", "a"),
        ("osmosis", "b"),
        ("juno", "a"),
        ("juno", "b"),
    ]
