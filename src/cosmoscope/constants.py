"""Endpoint paths, default URLs and timing constants."""

CHAIN_REGISTRY_URL = "https://raw.githubusercontent.com/cosmos/chain-registry/master"
COINGECKO_API_URL = "https://api.coingecko.com/api/v3"

CHAIN_INFO_FILE = "chain.json"
ASSET_LIST_FILE = "assetlist.json"

# REST gateway routes (Cosmos SDK gRPC-gateway)
NODE_INFO_PATH = "/cosmos/base/tendermint/v1beta1/node_info"
BANK_BALANCES_PATH = "/cosmos/bank/v1beta1/balances/{address}"
STAKING_DELEGATIONS_PATH = "/cosmos/staking/v1beta1/delegations/{address}"
DISTRIBUTION_REWARDS_PATH = "/cosmos/distribution/v1beta1/delegators/{address}/rewards"

# Seconds
DEFAULT_PROBE_TIMEOUT = 2.0
DEFAULT_SELECTION_TIMEOUT = 3.0
DEFAULT_REQUEST_TIMEOUT = 10.0

DEFAULT_STREAM_CAPACITY = 1000

# Blocking gateway calls in flight at once, per pool
DEFAULT_QUERY_CONCURRENCY = 32
DEFAULT_PROBE_CONCURRENCY = 64

DEFAULT_EXPONENT = 6
ATTO_EXPONENT = 18
UNKNOWN_IBC_SUFFIX = " (Unknown IBC Asset)"

CATEGORY_BANK = "bank"
CATEGORY_STAKING = "staking"
CATEGORY_REWARDS = "rewards"

# symbol -> CoinGecko id, extended by the ``coingecko_ids`` setting
DEFAULT_COINGECKO_IDS: dict[str, str] = {
    "ATOM": "cosmos",
    "OSMO": "osmosis",
    "TIA": "celestia",
    "INJ": "injective-protocol",
    "JUNO": "juno-network",
    "STARS": "stargaze",
    "AKT": "akash-network",
    "DYDX": "dydx-chain",
    "NTRN": "neutron-3",
    "STRD": "stride",
    "EVMOS": "evmos",
    "USDC": "usd-coin",
}
