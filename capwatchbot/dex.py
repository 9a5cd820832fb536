import aiohttp
from typing import Dict, List, Optional
from .config import DEX_TOKEN_URL, DEX_BLACKLIST, HTTP_TIMEOUT_SECONDS
from .helpers import is_solana_address

async def fetch_json(url: str, timeout: float = HTTP_TIMEOUT_SECONDS):
    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as s:
            async with s.get(url) as r:
                if r.status != 200:
                    return None
                return await r.json()
    except Exception:
        return None

async def fetch_dex_token(address: str):
    return await fetch_json(DEX_TOKEN_URL.format(address=address.strip()))

def _not_blacklisted(p: Dict) -> bool:
    return ((p.get("dexId") or "").lower() not in DEX_BLACKLIST)

def _liquidity(p: Dict) -> float:
    try: return float((p.get("liquidity") or {}).get("usd") or 0.0)
    except (TypeError, ValueError): return 0.0

def matching_pairs(pairs: List[Dict], ca: str) -> List[Dict]:
    if is_solana_address(ca):
        flt=[p for p in pairs if p.get("chainId")=="solana" and ((p.get("baseToken") or {}).get("address")==ca)]
    else:
        cal=ca.lower(); flt=[p for p in pairs if ((p.get("baseToken") or {}).get("address","").lower()==cal)]
    return [p for p in flt if _not_blacklisted(p)]

def best_pair(data, ca: str) -> Optional[Dict]:
    """Most liquid allowed pair whose base token is `ca`."""
    if not isinstance(data, dict) or not data.get("pairs"): return None
    flt = matching_pairs(data["pairs"], ca)
    if not flt: return None
    return max(flt, key=_liquidity)

def pair_symbol(pair: Dict) -> str:
    base = pair.get("baseToken") or {}
    return (base.get("symbol") or base.get("name") or "").strip()

def pair_price(pair: Dict) -> Optional[float]:
    try:
        price = float(pair.get("priceUsd") or 0)
    except (TypeError, ValueError):
        return None
    return price if price > 0 else None
