import re
from typing import Optional

def is_solana_address(addr: str) -> bool:
    if not addr or addr.startswith("0x"): return False
    return 32 <= len(addr) <= 44 and re.fullmatch(r"[1-9A-HJ-NP-Za-km-z]+", addr) is not None

def short_ca(ca: str) -> str:
    return ca if len(ca) <= 10 else f"{ca[:4]}…{ca[-4:]}"

def money(x: float) -> str:
    n=float(x)
    for u in ["","K","M","B","T"]:
        if abs(n) < 1000: return f"{n:,.2f}{u}"
        n/=1000
    return f"{n:,.2f}P"

def humanize(x: Optional[float]) -> str:
    if x is None: return "—"
    return money(float(x))

def signed(x: float) -> str:
    return ("+" if x >= 0 else "-") + humanize(abs(x))

def parse_mc_input(v: str) -> float:
    """Parse `2500000`, `2,500,000` or shorthand like `250k`, `2.5m`, `1b`, `1t`.

    Raises ValueError on anything else (including an empty string).
    """
    v=(v or "").lower().replace(",","").replace("$","").strip(); m=1
    if v.endswith("k"): m,v=1_000, v[:-1]
    elif v.endswith("m"): m,v=1_000_000, v[:-1]
    elif v.endswith("b"): m,v=1_000_000_000, v[:-1]
    elif v.endswith("t"): m,v=1_000_000_000_000, v[:-1]
    return float(v.strip())*m
