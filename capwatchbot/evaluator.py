"""Decides whether a watch fires for a freshly computed market cap.

`evaluate` is pure: it never touches the store, it returns the watch as it
should look after this observation and the caller persists it.

Change watches compare against the value they last fired at. A brand-new change
watch starts from 0, so its first observation fires unless the market cap is
below the delta; `notify_on_bootstrap=False` makes it adopt the first value
silently instead.

Target watches need a previous value to cross from, so the first observation
only records it. After that every observation moves the reference forward and
the watch fires each time the value passes the target, in either direction.
"""
from dataclasses import dataclass, replace

from .helpers import humanize, signed
from .models import Watch, WatchKind

@dataclass
class Evaluation:
    should_notify: bool
    message: str
    watch: Watch

def evaluate(watch: Watch, current: float, notify_on_bootstrap: bool = True) -> Evaluation:
    if watch.kind is WatchKind.CHANGE_THRESHOLD:
        return _change(watch, current, notify_on_bootstrap)
    return _cross(watch, current)

def _title(w: Watch) -> str:
    return f"{w.label} ({w.token_symbol})" if w.token_symbol else w.label

def _change(w: Watch, current: float, notify_on_bootstrap: bool) -> Evaluation:
    if w.last_observed is None and not notify_on_bootstrap:
        return Evaluation(False, "", replace(w, last_observed=current))
    prev = w.last_observed if w.last_observed is not None else 0.0
    diff = current - prev
    if abs(diff) < w.threshold_delta:
        return Evaluation(False, "", w)
    arrow = "📈" if diff >= 0 else "📉"
    msg = (f"{arrow} MCap changed for **{_title(w)}**: ${humanize(current)} "
           f"({signed(diff)} since ${humanize(prev)})")
    return Evaluation(True, msg, replace(w, last_observed=current))

def _cross(w: Watch, current: float) -> Evaluation:
    prev, target = w.last_observed, w.target_value
    updated = replace(w, last_observed=current)
    if prev is None:
        return Evaluation(False, "", updated)
    if prev < target <= current:
        msg = f"🟢 **{_title(w)}** rose above ${humanize(target)} MC\nCurrent: ${humanize(current)}"
        return Evaluation(True, msg, updated)
    if prev > target >= current:
        msg = f"🔴 **{_title(w)}** fell below ${humanize(target)} MC\nCurrent: ${humanize(current)}"
        return Evaluation(True, msg, updated)
    return Evaluation(False, "", updated)
