import re
from typing import Optional

from .config import HELP_URL, MAX_ROWS_LIST
from .conversation import ConversationEngine, Reply
from .errors import IndexOutOfRange
from .helpers import humanize
from .logging_setup import log
from .tables import watches_table

MENU_ADD    = "Add watch"
MENU_LIST   = "Watch list"
MENU_DELETE = "Delete watch"
MENU_CLEAR  = "Delete all watches"
MENU_HELP   = "Help"
MENU_CANCEL = "Cancel"
MENU_LABELS = (MENU_ADD, MENU_LIST, MENU_DELETE, MENU_CLEAR, MENU_HELP)
CANCEL_WORDS = {"cancel", "back", "/cancel"}

HELP_TEXT = ("Available options:\n"
             f"{MENU_ADD} - Add a new watch\n"
             f"{MENU_LIST} - Your active watches\n"
             f"{MENU_DELETE} - Delete one watch by number\n"
             f"{MENU_CLEAR} - Delete all your watches\n"
             f"{MENU_CANCEL} - Abort the watch you are adding\n"
             f"{MENU_HELP} - This message")

_DELETE_RE = re.compile(r"^delete watch\s+#?(\d+)$", re.I)


class Handlers:
    """Maps the user-facing signals onto the store and the conversation engine.

    Transport-agnostic: every method returns a Reply that the bot renders.
    """

    def __init__(self, store, engine: ConversationEngine, cache=None):
        self.store = store
        self.engine = engine
        self.cache = cache

    def start_add(self, owner_id: int) -> Reply:
        return self.engine.start(owner_id)

    def cancel(self, owner_id: int) -> Reply:
        return self.engine.cancel(owner_id)

    def list(self, owner_id: int) -> Reply:
        busy = self.engine.busy(owner_id)
        if busy: return busy
        watches = self.store.list(owner_id)
        if not watches:
            return Reply("No active watches yet.", "menu")
        shown = watches[:MAX_ROWS_LIST]
        current = {w.token_address: (self.cache.mc(w.token_address) if self.cache else None) for w in shown}
        more = f"\n…and {len(watches)-len(shown)} more" if len(watches) > len(shown) else ""
        return Reply(f"Active watches ({len(watches)}):\n{watches_table(shown, current)}{more}", "menu")

    def delete(self, owner_id: int, number: int) -> Reply:
        """`number` is 1-based, as shown in the list."""
        busy = self.engine.busy(owner_id)
        if busy: return busy
        try:
            removed = self.store.delete_at(owner_id, number - 1)
        except IndexOutOfRange:
            return Reply("❌ Incorrect watch number. Use Watch list to see valid numbers.", "menu")
        return Reply(f"🗑️ Watch #{number} deleted: **{removed.label}** ({removed.token_symbol}, "
                     f"{removed.kind.display} ${humanize(removed.value)}).", "menu")

    def delete_all(self, owner_id: int) -> Reply:
        busy = self.engine.busy(owner_id)
        if busy: return busy
        n = self.store.delete_all(owner_id)
        return Reply("All watches have been deleted." if n else "No active watches yet.", "menu")

    def help(self, owner_id: int) -> Reply:
        busy = self.engine.busy(owner_id)
        if busy: return busy
        return Reply(HELP_TEXT + (f"\n{HELP_URL}" if HELP_URL else ""), "menu")

    async def text(self, owner_id: int, text: str) -> Optional[Reply]:
        """Route a plain chat message. Returns None when it is not for us."""
        t = (text or "").strip()
        if self.engine.is_active(owner_id):
            if t.lower() in CANCEL_WORDS:
                return self.cancel(owner_id)
            if t in MENU_LABELS or _DELETE_RE.match(t):
                log.debug(f"Menu command during input rejected | owner={owner_id} text={t!r}")
                return self.engine.busy(owner_id)
            return await self.engine.handle_text(owner_id, t)
        m = _DELETE_RE.match(t)
        if m:
            return self.delete(owner_id, int(m.group(1)))
        if t == MENU_ADD:    return self.start_add(owner_id)
        if t == MENU_LIST:   return self.list(owner_id)
        if t == MENU_DELETE: return Reply("Send `Delete watch <number>` or use `/watch_remove`.", "menu")
        if t == MENU_CLEAR:  return self.delete_all(owner_id)
        if t == MENU_HELP:   return self.help(owner_id)
        return None
