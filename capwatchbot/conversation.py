"""Step-by-step collection of a new watch from free-text replies.

The step functions are pure: `(session, input) -> Transition`. A transition
either carries the next session or `None` (session over, owner back to idle),
the reply to show, and, on the last step, the finished watch.
`ConversationEngine` owns the per-owner session table and does the I/O around
those steps (symbol lookup, store insert, scheduler start).
"""
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

from .errors import CapWatchError, ValidationError
from .helpers import humanize, parse_mc_input, short_ca
from .logging_setup import log
from .models import Watch, WatchKind


class Step(Enum):
    IDLE                   = "idle"
    AWAITING_LABEL         = "awaiting_label"
    AWAITING_TOKEN_ADDRESS = "awaiting_token_address"
    AWAITING_KIND          = "awaiting_kind"
    AWAITING_VALUE         = "awaiting_value"


@dataclass
class Session:
    owner_id: int
    step: Step = Step.IDLE
    label: str = ""
    token_address: str = ""
    token_symbol: str = ""
    kind: Optional[WatchKind] = None
    touched_ts: float = 0.0


@dataclass
class Reply:
    text: str
    keyboard: Optional[str] = None   # "menu" | "kind" | "cancel"


@dataclass
class Transition:
    session: Optional[Session]
    reply: Reply
    watch: Optional[Watch] = None


PROMPT_LABEL = "Enter a name for this watch:"
PROMPT_TOKEN = "Enter your token address:"
PROMPT_KIND  = ("Choose the watch type:\n"
                "1. MCap change - alert every time MCap moves by a fixed amount\n"
                "2. MCap target - alert when MCap crosses a target value")
PROMPT_DELTA  = "Enter MCap change (e.g. `50000`, `250k`, `1.5m`):"
PROMPT_TARGET = "Enter target MCap (e.g. `2500000`, `2.5m`, `1b`):"
BUSY = "⚠️ Finish or cancel the current input first."

_KIND_WORDS = {
    "1": WatchKind.CHANGE_THRESHOLD, "change": WatchKind.CHANGE_THRESHOLD,
    "threshold": WatchKind.CHANGE_THRESHOLD, "changethreshold": WatchKind.CHANGE_THRESHOLD,
    "mcap change": WatchKind.CHANGE_THRESHOLD,
    "2": WatchKind.TARGET_CROSS, "target": WatchKind.TARGET_CROSS, "cross": WatchKind.TARGET_CROSS,
    "targetcross": WatchKind.TARGET_CROSS, "mcap target": WatchKind.TARGET_CROSS,
}


def parse_kind(text: str) -> Optional[WatchKind]:
    return _KIND_WORDS.get((text or "").strip().lower())


# ---- pure steps ----

def start_session(owner_id: int, now: float) -> Transition:
    s = Session(owner_id=owner_id, step=Step.AWAITING_LABEL, touched_ts=now)
    return Transition(s, Reply(PROMPT_LABEL, "cancel"))

def on_label(s: Session, text: str) -> Transition:
    label = (text or "").strip()
    if not label:
        return Transition(s, Reply("Name can't be empty. " + PROMPT_LABEL, "cancel"))
    return Transition(replace(s, step=Step.AWAITING_TOKEN_ADDRESS, label=label), Reply(PROMPT_TOKEN, "cancel"))

def on_token(s: Session, address: str, symbol: Optional[str]) -> Transition:
    if not symbol:
        return Transition(None, Reply(f"❌ Couldn’t find Solana token `{address}`. Start again with Add watch.", "menu"))
    nxt = replace(s, step=Step.AWAITING_KIND, token_address=address, token_symbol=symbol)
    return Transition(nxt, Reply(f"Found **{symbol}**.\n{PROMPT_KIND}", "kind"))

def on_kind(s: Session, text: str) -> Transition:
    kind = parse_kind(text)
    if kind is None:
        return Transition(s, Reply("Pick 1 or 2.\n" + PROMPT_KIND, "kind"))
    prompt = PROMPT_DELTA if kind is WatchKind.CHANGE_THRESHOLD else PROMPT_TARGET
    return Transition(replace(s, step=Step.AWAITING_VALUE, kind=kind), Reply(prompt, "cancel"))

def on_value(s: Session, text: str) -> Transition:
    try:
        value = parse_mc_input(text)
        if s.kind is WatchKind.CHANGE_THRESHOLD:
            watch = Watch.change_threshold(s.label, s.token_address, s.token_symbol, value, owner_id=s.owner_id)
        else:
            watch = Watch.target_cross(s.label, s.token_address, s.token_symbol, value, owner_id=s.owner_id)
    except ValueError:
        return Transition(None, Reply("❌ Pls enter a valid number. Watch not created.", "menu"))
    except ValidationError as e:
        return Transition(None, Reply(f"❌ {e} Watch not created.", "menu"))
    what = "change" if watch.kind is WatchKind.CHANGE_THRESHOLD else "target"
    text = (f"✅ Watch added: **{watch.label}** | {watch.token_symbol} (`{short_ca(watch.token_address)}`) "
            f"with MCap {what} ${humanize(watch.value)}")
    return Transition(None, Reply(text, "menu"), watch)


class ConversationEngine:
    """Per-owner session table around the pure steps.

    The engine is invoked once per input event and never waits for the next
    message. A session idle for longer than `session_ttl` is dropped the next
    time its owner shows up.
    """

    def __init__(self, store, market, on_created: Optional[Callable[[Watch], Awaitable[None]]] = None,
                 session_ttl: float = 600, clock: Callable[[], float] = time.monotonic):
        self.store = store
        self.market = market
        self.on_created = on_created
        self.session_ttl = session_ttl
        self._clock = clock
        self._sessions: Dict[int, Session] = {}

    def session(self, owner_id: int) -> Optional[Session]:
        s = self._sessions.get(owner_id)
        if s and self.session_ttl and self._clock() - s.touched_ts > self.session_ttl:
            log.info(f"Session expired | owner={owner_id} step={s.step.value}")
            del self._sessions[owner_id]
            return None
        return s

    def is_active(self, owner_id: int) -> bool:
        return self.session(owner_id) is not None

    def busy(self, owner_id: int) -> Optional[Reply]:
        return Reply(BUSY, "cancel") if self.is_active(owner_id) else None

    def start(self, owner_id: int) -> Reply:
        if self.is_active(owner_id):
            return Reply(BUSY + " You are already adding a watch.", "cancel")
        return self._apply(owner_id, start_session(owner_id, self._clock()))

    def cancel(self, owner_id: int) -> Reply:
        if self._sessions.pop(owner_id, None) is None:
            return Reply("Nothing to cancel.", "menu")
        log.info(f"Session cancelled | owner={owner_id}")
        return Reply("Cancelled. Choose your option:", "menu")

    async def handle_text(self, owner_id: int, text: str) -> Optional[Reply]:
        s = self.session(owner_id)
        if s is None:
            return None
        if s.step is Step.AWAITING_LABEL:
            t = on_label(s, text)
        elif s.step is Step.AWAITING_TOKEN_ADDRESS:
            address = (text or "").strip()
            try:
                symbol = await self.market.resolve_symbol(address)
            except CapWatchError as e:
                log.info(f"Token lookup failed | owner={owner_id} address={address} err={e!r}")
                symbol = None
            # cancelled while the lookup was in flight
            if self._sessions.get(owner_id) is not s:
                return None
            t = on_token(s, address, symbol)
        elif s.step is Step.AWAITING_KIND:
            t = on_kind(s, text)
        else:
            t = on_value(s, text)
        return await self._finish(owner_id, t)

    async def _finish(self, owner_id: int, t: Transition) -> Reply:
        reply = self._apply(owner_id, t)
        if t.watch is not None:
            watch_id = self.store.create(owner_id, t.watch)
            if self.on_created is not None:
                await self.on_created(self.store.get(owner_id, watch_id))
        return reply

    def _apply(self, owner_id: int, t: Transition) -> Reply:
        if t.session is None:
            self._sessions.pop(owner_id, None)
        else:
            self._sessions[owner_id] = replace(t.session, touched_ts=self._clock())
        return t.reply
