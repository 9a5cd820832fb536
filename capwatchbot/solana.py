import aiohttp
from typing import Optional
from .config import SOLANA_RPC, HTTP_TIMEOUT_SECONDS

async def sol_rpc(method: str, params: list):
    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=HTTP_TIMEOUT_SECONDS)) as s:
            async with s.post(SOLANA_RPC, json={"jsonrpc":"2.0","id":1,"method":method,"params":params}) as r:
                if r.status != 200: return None
                return await r.json()
    except Exception:
        return None

async def get_token_supply(mint: str) -> Optional[float]:
    res = await sol_rpc("getTokenSupply", [mint])
    try:
        value = ((res or {}).get("result") or {}).get("value") or {}
        if value.get("uiAmount") is not None:
            return float(value["uiAmount"])
        return int(value["amount"]) / (10 ** int(value.get("decimals") or 0))
    except Exception:
        return None
