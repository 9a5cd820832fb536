from typing import Dict, List, Optional
from .helpers import humanize
from .models import Watch, WatchKind

def watches_table(watches: List[Watch], current_by_ca: Dict[str, Optional[float]]) -> str:
    headers=["#","Name","Token","Rule","Current"]
    widths =[3,  12,    8,      14,    10]
    aligns =["r","l",   "l",    "l",   "r"]

    def cut(s,w):
        s=str(s).replace("\n"," ").strip()
        return s if len(s)<=w else s[:max(1,w-1)]+"…"

    def cell(v,w,a):
        s=cut(v,w)
        return s.rjust(w) if a=="r" else (s.center(w) if a=="c" else s.ljust(w))

    rows=[]
    for i, w in enumerate(watches, 1):
        rule = (f"Δ ${humanize(w.threshold_delta)}" if w.kind is WatchKind.CHANGE_THRESHOLD
                else f"⇅ ${humanize(w.target_value)}")
        curr = current_by_ca.get(w.token_address)
        rows.append([str(i), w.label, w.token_symbol, rule, f"${humanize(curr)}" if curr is not None else "—"])

    head="  ".join(cell(h,w,'l') for h,w in zip(headers,widths))
    sep="  ".join("─"*w for w in widths)
    body="\n".join("  ".join(cell(v,w,a) for v,w,a in zip(r,widths,aligns)) for r in rows) or "—"
    return f"```\n{head}\n{sep}\n{body}\n```"
