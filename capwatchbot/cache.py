import time
from typing import Dict, Optional
from .models import TokenSnapshot

class MarketCapCache:
    """Last fetched market cap per token address, for display only."""

    def __init__(self):
        self._by_ca: Dict[str, TokenSnapshot] = {}

    def update(self, ca: str, *, price: float, supply: float) -> TokenSnapshot:
        snap = TokenSnapshot(mc=price*supply, price=price, supply=supply, updated_ts=time.time())
        self._by_ca[ca] = snap
        return snap

    def get(self, ca: str) -> Optional[TokenSnapshot]:
        return self._by_ca.get(ca)

    def mc(self, ca: str) -> Optional[float]:
        s = self._by_ca.get(ca)
        return s.mc if s else None
