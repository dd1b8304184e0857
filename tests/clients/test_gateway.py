import asyncio
import threading
import time
from unittest.mock import patch

import pytest
import requests

from cosmoscope.clients.gateway import BlockingCallPool, GatewayClient
from cosmoscope.domain import CoinAmount
from cosmoscope.errors import DecodeError, TransportError

ENDPOINT = "https://rest.test"
ADDRESS = "test1account"


@pytest.fixture
def client():
    gateway = GatewayClient(request_timeout=10.0, probe_timeout=2.0)
    yield gateway
    gateway.close()


class TestProbe:
    @pytest.mark.asyncio
    async def test_healthy_endpoint(self, client, make_response):
        with patch(
            "cosmoscope.clients.gateway.requests.get",
            return_value=make_response(200, {"default_node_info": {}}),
        ) as mock_get:
            assert await client.probe(ENDPOINT) is True

        mock_get.assert_called_once_with(
            f"{ENDPOINT}/cosmos/base/tendermint/v1beta1/node_info", timeout=2.0
        )

    @pytest.mark.asyncio
    async def test_non_200_status_is_unhealthy(self, client, make_response):
        with patch(
            "cosmoscope.clients.gateway.requests.get",
            return_value=make_response(503),
        ):
            assert await client.probe(ENDPOINT) is False

    @pytest.mark.asyncio
    async def test_connection_error_is_unhealthy(self, client):
        with patch(
            "cosmoscope.clients.gateway.requests.get",
            side_effect=requests.Timeout("timed out"),
        ):
            assert await client.probe(ENDPOINT) is False


@pytest.mark.asyncio
async def test_bank_balances(client, make_response):
    payload = {
        "balances": [
            {"denom": "utest", "amount": "1000000"},
            {"denom": "ibc/ABC", "amount": "5"},
        ],
        "pagination": {"next_key": None, "total": "2"},
    }
    with patch(
        "cosmoscope.clients.gateway.requests.get",
        return_value=make_response(200, payload),
    ) as mock_get:
        balances = await client.bank_balances(ENDPOINT, ADDRESS)

    mock_get.assert_called_once_with(
        f"{ENDPOINT}/cosmos/bank/v1beta1/balances/{ADDRESS}", timeout=10.0
    )
    assert balances == [CoinAmount("utest", "1000000"), CoinAmount("ibc/ABC", "5")]


@pytest.mark.asyncio
async def test_bank_balances_server_error_raises_transport_error(client, make_response):
    with patch(
        "cosmoscope.clients.gateway.requests.get",
        return_value=make_response(500),
    ):
        with pytest.raises(TransportError):
            await client.bank_balances(ENDPOINT, ADDRESS)


@pytest.mark.asyncio
async def test_bank_balances_invalid_json_raises_decode_error(client, make_response):
    with patch(
        "cosmoscope.clients.gateway.requests.get",
        return_value=make_response(200, invalid_json=True),
    ):
        with pytest.raises(DecodeError):
            await client.bank_balances(ENDPOINT, ADDRESS)


@pytest.mark.asyncio
async def test_bank_balances_unexpected_shape_raises_decode_error(client, make_response):
    with patch(
        "cosmoscope.clients.gateway.requests.get",
        return_value=make_response(200, {"code": 3, "message": "decoding bech32 failed"}),
    ):
        with pytest.raises(DecodeError, match="no balances list"):
            await client.bank_balances(ENDPOINT, ADDRESS)


@pytest.mark.asyncio
async def test_delegations_use_balance_of_each_response(client, make_response):
    payload = {
        "delegation_responses": [
            {
                "delegation": {"validator_address": "valoper1"},
                "balance": {"denom": "utest", "amount": "3000000"},
            },
            {
                "delegation": {"validator_address": "valoper2"},
                "balance": {"denom": "utest", "amount": "1000000"},
            },
        ]
    }
    with patch(
        "cosmoscope.clients.gateway.requests.get",
        return_value=make_response(200, payload),
    ) as mock_get:
        delegations = await client.delegations(ENDPOINT, ADDRESS)

    mock_get.assert_called_once_with(
        f"{ENDPOINT}/cosmos/staking/v1beta1/delegations/{ADDRESS}", timeout=10.0
    )
    assert delegations == [CoinAmount("utest", "3000000"), CoinAmount("utest", "1000000")]


@pytest.mark.asyncio
async def test_rewards_are_grouped_per_validator(client, make_response):
    payload = {
        "rewards": [
            {
                "validator_address": "valoper1",
                "reward": [{"denom": "uatom", "amount": "500000.120000000000000000"}],
            },
            {"validator_address": "valoper2", "reward": []},
        ],
        "total": [{"denom": "uatom", "amount": "500000.120000000000000000"}],
    }
    with patch(
        "cosmoscope.clients.gateway.requests.get",
        return_value=make_response(200, payload),
    ) as mock_get:
        rewards = await client.rewards(ENDPOINT, ADDRESS)

    mock_get.assert_called_once_with(
        f"{ENDPOINT}/cosmos/distribution/v1beta1/delegators/{ADDRESS}/rewards",
        timeout=10.0,
    )
    assert rewards == [[CoinAmount("uatom", "500000.120000000000000000")], []]


@pytest.mark.asyncio
async def test_rewards_malformed_coin_raises_decode_error(client, make_response):
    payload = {"rewards": [{"validator_address": "v", "reward": [{"denom": "uatom"}]}]}
    with patch(
        "cosmoscope.clients.gateway.requests.get",
        return_value=make_response(200, payload),
    ):
        with pytest.raises(DecodeError, match="malformed coin entry"):
            await client.rewards(ENDPOINT, ADDRESS)


@pytest.mark.asyncio
async def test_probe_past_deadline_is_unhealthy(client, make_response):
    with patch(
        "cosmoscope.clients.gateway.requests.get",
        side_effect=lambda url, timeout: time.sleep(0.3) or make_response(200),
    ):
        assert await client.probe(ENDPOINT, deadline=0.05) is False


@pytest.mark.asyncio
async def test_probe_skipped_before_sending(client):
    with patch("cosmoscope.clients.gateway.requests.get") as mock_get:
        assert await client.probe(ENDPOINT, skip_if=lambda: True) is False

    mock_get.assert_not_called()


@pytest.mark.asyncio
async def test_queries_never_exceed_pool_size(make_response):
    lock = threading.Lock()
    active = 0
    peak = 0
    empty = make_response(200, {"balances": []})

    def counting_get(url, timeout=None):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        with lock:
            active -= 1
        return empty

    client = GatewayClient(query_concurrency=3)
    try:
        with patch("cosmoscope.clients.gateway.requests.get", side_effect=counting_get):
            results = await asyncio.gather(
                *(client.bank_balances(ENDPOINT, f"acct{i}") for i in range(12))
            )
    finally:
        client.close()

    assert results == [[]] * 12
    assert 1 <= peak <= 3


class TestBlockingCallPool:
    @pytest.mark.asyncio
    async def test_time_waiting_for_a_slot_is_not_charged_to_the_deadline(self):
        pool = BlockingCallPool(1, name="test-pool")
        try:
            first = asyncio.create_task(pool.run(time.sleep, 0.3))
            await asyncio.sleep(0)
            # queued ~0.3s behind the first call but runs for only 0.01s
            result = await pool.run(lambda: time.sleep(0.01) or "done", deadline=0.2)
            await first
        finally:
            pool.close()

        assert result == "done"

    @pytest.mark.asyncio
    async def test_slot_is_held_until_the_thread_returns(self):
        pool = BlockingCallPool(1, name="test-pool")
        try:
            with pytest.raises(TimeoutError):
                await pool.run(time.sleep, 0.2, deadline=0.02)
            assert pool._slots.locked()

            await asyncio.sleep(0.4)
            assert not pool._slots.locked()
        finally:
            pool.close()

    @pytest.mark.asyncio
    async def test_skip_if_checked_once_a_slot_frees(self):
        pool = BlockingCallPool(1, name="test-pool")
        calls: list[str] = []
        try:
            result = await pool.run(calls.append, "x", skip_if=lambda: True)
            assert await pool.run(calls.append, "y") is None
        finally:
            pool.close()

        assert result is None
        assert calls == ["y"]

    def test_rejects_empty_pool(self):
        with pytest.raises(ValueError, match="at least 1"):
            BlockingCallPool(0, name="test-pool")
