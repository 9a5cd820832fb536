import asyncio, time
from typing import Callable, Dict, Tuple

from .config import SUPPLY_URL, JUP_PRICE_URL, SUPPLY_TTL_SECONDS, DEFAULT_SUPPLY, SOURCE_TIMEOUT_SECONDS
from .dex import fetch_json, fetch_dex_token, best_pair, pair_symbol, pair_price
from .errors import TokenNotFound, DataUnavailable
from .helpers import is_solana_address
from .logging_setup import log
from .solana import get_token_supply


class MarketDataClient:
    """Symbol, circulating supply and unit price for a Solana token address.

    Every method may be slow or fail; failures surface as TokenNotFound or
    DataUnavailable, never as a made-up number. Each upstream source gets its
    own `source_timeout`, so a hung primary still leaves time for the fallback.
    """

    def __init__(self, supply_ttl: float = SUPPLY_TTL_SECONDS, default_supply: float = DEFAULT_SUPPLY,
                 source_timeout: float = SOURCE_TIMEOUT_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.supply_ttl = supply_ttl
        self.default_supply = default_supply
        self.source_timeout = source_timeout
        self._clock = clock
        self._supply: Dict[str, Tuple[float, float]] = {}   # address -> (supply, fetched_at)

    async def _source(self, coro, what: str):
        try:
            return await asyncio.wait_for(coro, timeout=self.source_timeout)
        except asyncio.TimeoutError:
            log.debug(f"{what} timed out after {self.source_timeout}s")
            return None

    async def resolve_symbol(self, address: str) -> str:
        address = (address or "").strip()
        if not address:
            raise TokenNotFound("empty token address")
        # supply only comes from Solana sources
        if not is_solana_address(address):
            raise TokenNotFound(f"not a Solana address: {address}")
        pair = best_pair(await self._source(fetch_dex_token(address), "DexScreener"), address)
        symbol = pair_symbol(pair) if pair else ""
        if not symbol:
            raise TokenNotFound(address)
        return symbol

    async def fetch_supply(self, address: str) -> float:
        hit = self._supply.get(address)
        if hit and self._clock() - hit[1] < self.supply_ttl:
            return hit[0]

        supply = None
        data = await self._source(fetch_json(SUPPLY_URL.format(address=address)), "solana.fm supply")
        if isinstance(data, dict):
            try:
                supply = float(data.get("realCirculatingSupply") or self.default_supply)
            except (TypeError, ValueError):
                supply = self.default_supply
        else:
            log.debug(f"Supply endpoint failed for {address}; trying RPC")
            supply = await self._source(get_token_supply(address), "RPC getTokenSupply")

        if not supply or supply <= 0:
            raise DataUnavailable(f"supply for {address}")
        self._supply[address] = (supply, self._clock())
        return supply

    async def fetch_price(self, address: str) -> float:
        data = await self._source(fetch_json(JUP_PRICE_URL.format(address=address)), "Jupiter price")
        try:
            price = float(((data or {}).get("data") or {})[address]["price"])
            if price > 0: return price
        except (KeyError, TypeError, ValueError):
            pass
        log.debug(f"Jupiter price missing for {address}; trying DexScreener")
        pair = best_pair(await self._source(fetch_dex_token(address), "DexScreener"), address)
        price = pair_price(pair) if pair else None
        if price is None:
            raise DataUnavailable(f"price for {address}")
        return price
