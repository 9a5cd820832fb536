import pytest
from unittest.mock import AsyncMock, patch

from capwatchbot.conversation import (
    BUSY, ConversationEngine, Session, Step,
    on_kind, on_label, on_token, on_value, parse_kind, start_session,
)
from capwatchbot.errors import DataUnavailable, TokenNotFound
from capwatchbot.market import MarketDataClient
from capwatchbot.models import WatchKind
from tests.conftest import OWNER, OTHER, change_watch


class FakeClock:
    def __init__(self, t=1_000.0):
        self.t = t

    def __call__(self):
        return self.t


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def on_created():
    return AsyncMock()


@pytest.fixture
def engine(store, market, on_created, clock):
    return ConversationEngine(store, market, on_created=on_created, session_ttl=600, clock=clock)


async def walk(engine, *texts, owner=OWNER):
    reply = engine.start(owner)
    for t in texts:
        reply = await engine.handle_text(owner, t)
    return reply


class TestSteps:
    """Pure transitions, no engine involved."""

    def test_start(self):
        t = start_session(OWNER, 5.0)
        assert t.session.step is Step.AWAITING_LABEL
        assert t.reply.keyboard == "cancel"

    def test_empty_label_reprompts(self):
        s = Session(OWNER, Step.AWAITING_LABEL)
        t = on_label(s, "   ")
        assert t.session.step is Step.AWAITING_LABEL

    def test_label_advances(self):
        t = on_label(Session(OWNER, Step.AWAITING_LABEL), " my watch ")
        assert t.session.step is Step.AWAITING_TOKEN_ADDRESS
        assert t.session.label == "my watch"

    def test_token_not_found_ends_session(self):
        t = on_token(Session(OWNER, Step.AWAITING_TOKEN_ADDRESS, label="x"), "nope", None)
        assert t.session is None
        assert t.watch is None

    def test_token_found(self):
        t = on_token(Session(OWNER, Step.AWAITING_TOKEN_ADDRESS, label="x"), "Addr", "BONK")
        assert t.session.step is Step.AWAITING_KIND
        assert t.session.token_symbol == "BONK"
        assert t.reply.keyboard == "kind"

    @pytest.mark.parametrize("text,kind", [
        ("1", WatchKind.CHANGE_THRESHOLD), ("ChangeThreshold", WatchKind.CHANGE_THRESHOLD),
        ("threshold", WatchKind.CHANGE_THRESHOLD), ("2", WatchKind.TARGET_CROSS),
        ("TargetCross", WatchKind.TARGET_CROSS), (" Target ", WatchKind.TARGET_CROSS),
    ])
    def test_parse_kind(self, text, kind):
        assert parse_kind(text) is kind

    def test_unknown_kind_reprompts(self):
        s = Session(OWNER, Step.AWAITING_KIND, label="x", token_address="A", token_symbol="S")
        t = on_kind(s, "3")
        assert t.session is s

    @pytest.mark.parametrize("text", ["0", "-5", "abc", "", "nan", "inf"])
    def test_bad_threshold_ends_session(self, text):
        s = Session(OWNER, Step.AWAITING_VALUE, "x", "A", "S", WatchKind.CHANGE_THRESHOLD)
        t = on_value(s, text)
        assert t.session is None
        assert t.watch is None

    def test_negative_target_accepted(self):
        s = Session(OWNER, Step.AWAITING_VALUE, "x", "A", "S", WatchKind.TARGET_CROSS)
        t = on_value(s, "-5")
        assert t.watch.target_value == -5.0

    def test_shorthand_threshold(self):
        s = Session(OWNER, Step.AWAITING_VALUE, "x", "A", "S", WatchKind.CHANGE_THRESHOLD)
        t = on_value(s, "2.5m")
        assert t.session is None
        assert t.watch.threshold_delta == 2_500_000
        assert t.watch.last_observed is None

    def test_success_reply_uses_pipe_separator(self):
        s = Session(OWNER, Step.AWAITING_VALUE, "bonk", "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
                    "BONK", WatchKind.TARGET_CROSS)
        text = on_value(s, "2.5m").reply.text
        assert text.startswith("✅ Watch added: **bonk** | BONK (")
        assert "—" not in text


class TestEngine:

    @pytest.mark.asyncio
    async def test_full_change_flow(self, engine, store, market, on_created):
        reply = await walk(engine, "bonk watch", "Addr1", "1", "50k")
        assert reply.text.startswith("✅")
        assert not engine.is_active(OWNER)
        [w] = store.list(OWNER)
        assert (w.label, w.token_address, w.token_symbol) == ("bonk watch", "Addr1", "BONK")
        assert w.kind is WatchKind.CHANGE_THRESHOLD and w.threshold_delta == 50_000
        market.resolve_symbol.assert_awaited_once_with("Addr1")
        on_created.assert_awaited_once()
        assert on_created.await_args.args[0].id == w.id

    @pytest.mark.asyncio
    async def test_full_target_flow(self, engine, store):
        await walk(engine, "wif", "Addr2", "2", "1b")
        [w] = store.list(OWNER)
        assert w.kind is WatchKind.TARGET_CROSS
        assert w.target_value == 1_000_000_000
        assert w.last_observed is None

    @pytest.mark.asyncio
    async def test_zero_threshold_rejected(self, engine, store, on_created):
        reply = await walk(engine, "x", "Addr1", "1", "0")
        assert reply.text.startswith("❌")
        assert not engine.is_active(OWNER)
        assert store.count(OWNER) == 0
        on_created.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exc", [TokenNotFound("x"), DataUnavailable("down")])
    async def test_unresolvable_token_discards_session(self, engine, store, market, exc):
        market.resolve_symbol.side_effect = exc
        reply = await walk(engine, "x", "bad")
        assert "Couldn’t find" in reply.text
        assert not engine.is_active(OWNER)
        assert store.count(OWNER) == 0

    @pytest.mark.asyncio
    async def test_second_start_rejected(self, engine, store):
        store.create(OWNER, change_watch())
        engine.start(OWNER)
        await engine.handle_text(OWNER, "label")
        reply = engine.start(OWNER)
        assert BUSY in reply.text
        assert engine.session(OWNER).step is Step.AWAITING_TOKEN_ADDRESS
        assert store.count(OWNER) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("texts", [(), ("x",), ("x", "Addr1"), ("x", "Addr1", "2")])
    async def test_cancel_from_any_step(self, engine, store, texts):
        await walk(engine, *texts)
        assert engine.is_active(OWNER)
        reply = engine.cancel(OWNER)
        assert reply.keyboard == "menu"
        assert not engine.is_active(OWNER)
        assert await engine.handle_text(OWNER, "100") is None
        assert store.count(OWNER) == 0

    def test_cancel_without_session(self, engine):
        assert engine.cancel(OWNER).text == "Nothing to cancel."

    @pytest.mark.asyncio
    async def test_text_without_session_is_ignored(self, engine):
        assert await engine.handle_text(OWNER, "hello") is None

    @pytest.mark.asyncio
    async def test_sessions_are_per_owner(self, engine, store):
        engine.start(OWNER)
        engine.start(OTHER)
        await engine.handle_text(OWNER, "mine")
        assert engine.session(OTHER).step is Step.AWAITING_LABEL
        assert engine.busy(OWNER) is not None
        engine.cancel(OTHER)
        assert engine.busy(OTHER) is None

    @pytest.mark.asyncio
    async def test_idle_session_expires(self, engine, clock):
        engine.start(OWNER)
        await engine.handle_text(OWNER, "x")
        clock.t += 601
        assert not engine.is_active(OWNER)
        assert await engine.handle_text(OWNER, "Addr1") is None
        assert engine.start(OWNER).text.startswith("Enter a name")

    @pytest.mark.asyncio
    async def test_activity_refreshes_ttl(self, engine, clock):
        engine.start(OWNER)
        clock.t += 500
        await engine.handle_text(OWNER, "x")
        clock.t += 500
        assert engine.is_active(OWNER)

    @pytest.mark.asyncio
    async def test_cancel_during_lookup_drops_result(self, engine, store, market):
        engine.start(OWNER)
        await engine.handle_text(OWNER, "x")

        async def resolve(_address):
            engine.cancel(OWNER)
            return "BONK"

        market.resolve_symbol.side_effect = resolve
        assert await engine.handle_text(OWNER, "Addr1") is None
        assert not engine.is_active(OWNER)

    @pytest.mark.asyncio
    async def test_non_solana_address_is_not_accepted(self, store, on_created, clock):
        evm = "0x6982508145454Ce325dDbE47a25d4ec3d2311933"
        payload = {"pairs": [{"chainId": "ethereum", "dexId": "uniswap", "priceUsd": "0.00001",
                              "baseToken": {"address": evm, "symbol": "PEPE"}, "liquidity": {"usd": 1e6}}]}
        engine = ConversationEngine(store, MarketDataClient(), on_created=on_created, clock=clock)
        with patch("capwatchbot.market.fetch_dex_token", AsyncMock(return_value=payload)):
            engine.start(OWNER)
            await engine.handle_text(OWNER, "pepe")
            reply = await engine.handle_text(OWNER, evm)
        assert "Couldn’t find" in reply.text
        assert not engine.is_active(OWNER)
        assert await engine.handle_text(OWNER, "1") is None
        assert store.count(OWNER) == 0
        on_created.assert_not_awaited()
