"""Canned platform API responses."""

DEFILLAMA_POOLS = {
    "status": "success",
    "data": [
        {"pool": "p-1", "chain": "Ethereum", "project": "lido", "symbol": "STETH",
         "tvlUsd": 3000.0, "apy": 3.0, "apyBase": 3.0, "apyReward": None},
        {"pool": "p-2", "chain": "Ethereum", "project": "morpho-blue", "symbol": "USDC",
         "tvlUsd": 1000.0, "apy": 7.0, "apyBase": 5.0, "apyReward": 2.0},
    ],
}

MORPHO_VAULTS = {
    "data": {
        "vaults": {
            "items": [
                {"address": "0xabc", "name": "Steakhouse USDC", "symbol": "steakUSDC",
                 "chain": {"id": 1, "network": "ethereum"},
                 "state": {"apy": 0.048, "netApy": 0.05, "totalAssetsUsd": 2_000_000.0}},
                {"address": "0xdef", "name": "Gauntlet WETH", "symbol": "gtWETH",
                 "chain": {"id": 1, "network": "ethereum"},
                 "state": {"apy": 0.02, "netApy": None, "totalAssetsUsd": 500_000.0}},
            ]
        }
    }
}

LIDO_APR = {
    "data": {
        "aprs": [{"timeUnix": 1700000000, "apr": 3.1}, {"timeUnix": 1700086400, "apr": 3.3}],
        "smaApr": 3.2,
    },
    "meta": {"symbol": "stETH", "address": "0xae7ab96520de3a18e5e111b5eaab095312d7fe84", "chainId": 1},
}

ETHERSCAN_PRICE = {
    "status": "1",
    "message": "OK",
    "result": {"ethbtc": "0.05", "ethbtc_timestamp": "1700000000", "ethusd": "2000.5", "ethusd_timestamp": "1700000000"},
}

ETHERSCAN_ERROR = {
    "status": "0",
    "message": "NOTOK",
    "result": "Invalid API Key",
}

ETHERSCAN_SUPPLY = {
    "status": "1",
    "message": "OK",
    "result": "120000000000000000000000000",
}
