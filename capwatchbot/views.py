from typing import Optional
import discord

from .conversation import Reply, Step
from .models import WatchKind

VIEW_TIMEOUT = 600


class MainMenu(discord.ui.View):
    def __init__(self, bot):
        super().__init__(timeout=VIEW_TIMEOUT)
        self.bot = bot

    @discord.ui.button(label="Add watch", style=discord.ButtonStyle.primary, row=0)
    async def add(self, inter: discord.Interaction, _button: discord.ui.Button):
        await self.bot.respond(inter, self.bot.handlers.start_add(inter.user.id))

    @discord.ui.button(label="Watch list", style=discord.ButtonStyle.secondary, row=1)
    async def watch_list(self, inter: discord.Interaction, _button: discord.ui.Button):
        await self.bot.respond(inter, self.bot.handlers.list(inter.user.id))

    @discord.ui.button(label="Delete watch", style=discord.ButtonStyle.secondary, row=1)
    async def delete(self, inter: discord.Interaction, _button: discord.ui.Button):
        busy = self.bot.engine.busy(inter.user.id)
        if busy:
            await self.bot.respond(inter, busy); return
        await inter.response.send_modal(DeleteModal(self.bot))

    @discord.ui.button(label="Delete all watches", style=discord.ButtonStyle.danger, row=2)
    async def clear(self, inter: discord.Interaction, _button: discord.ui.Button):
        await self.bot.respond(inter, self.bot.handlers.delete_all(inter.user.id))

    @discord.ui.button(label="Help", style=discord.ButtonStyle.secondary, row=2)
    async def show_help(self, inter: discord.Interaction, _button: discord.ui.Button):
        await self.bot.respond(inter, self.bot.handlers.help(inter.user.id))


class CancelView(discord.ui.View):
    def __init__(self, bot):
        super().__init__(timeout=VIEW_TIMEOUT)
        self.bot = bot

    @discord.ui.button(label="Cancel", style=discord.ButtonStyle.danger, row=4)
    async def cancel(self, inter: discord.Interaction, _button: discord.ui.Button):
        await self.bot.respond(inter, self.bot.handlers.cancel(inter.user.id))


class KindView(CancelView):
    @discord.ui.button(label="1. MCap change", style=discord.ButtonStyle.primary, row=0)
    async def change(self, inter: discord.Interaction, _button: discord.ui.Button):
        await self._pick(inter, WatchKind.CHANGE_THRESHOLD)

    @discord.ui.button(label="2. MCap target", style=discord.ButtonStyle.primary, row=0)
    async def target(self, inter: discord.Interaction, _button: discord.ui.Button):
        await self._pick(inter, WatchKind.TARGET_CROSS)

    async def _pick(self, inter: discord.Interaction, kind: WatchKind):
        s = self.bot.engine.session(inter.user.id)
        if s is None or s.step is not Step.AWAITING_KIND:
            await self.bot.respond(inter, Reply("This button has expired.", "menu" if s is None else "cancel"))
            return
        await self.bot.respond(inter, await self.bot.engine.handle_text(inter.user.id, kind.value))


class DeleteModal(discord.ui.Modal, title="Delete watch"):
    number = discord.ui.TextInput(label="Watch number (from Watch list)", placeholder="1", max_length=4)

    def __init__(self, bot):
        super().__init__()
        self.bot = bot

    async def on_submit(self, inter: discord.Interaction):
        try:
            n = int(str(self.number.value).strip())
        except ValueError:
            reply = Reply("❌ Incorrect watch number.", "menu")
        else:
            reply = self.bot.handlers.delete(inter.user.id, n)
        await self.bot.respond(inter, reply)


def view_for(keyboard: Optional[str], bot) -> Optional[discord.ui.View]:
    if keyboard == "menu":   return MainMenu(bot)
    if keyboard == "kind":   return KindView(bot)
    if keyboard == "cancel": return CancelView(bot)
    return None
