import discord
from discord import app_commands
from discord.ext import commands

from .cache import MarketCapCache
from .config import LOG_LEVEL, POLL_SECONDS, WATCH_DELAY_SECONDS, SESSION_TTL_SECONDS, CHANGE_NOTIFY_ON_FIRST
from .conversation import ConversationEngine, Reply
from .handlers import Handlers
from .logging_setup import log
from .market import MarketDataClient
from .notifier import DiscordNotifier
from .scheduler import PollingScheduler
from .storage import WatchStore
from .views import MainMenu, view_for


class Bot(commands.Bot):
    def __init__(self, store: WatchStore = None, market: MarketDataClient = None):
        intents = discord.Intents.default()
        # free-text replies of the add-watch flow arrive as plain messages
        intents.message_content = True
        super().__init__(command_prefix="!", intents=intents)

        self.store = store or WatchStore()
        self.market = market or MarketDataClient()
        self.cache = MarketCapCache()
        self.scheduler = PollingScheduler(self.store, self.market, DiscordNotifier(self), self.cache)
        self.engine = ConversationEngine(self.store, self.market, on_created=self.scheduler.ensure_running,
                                         session_ttl=SESSION_TTL_SECONDS)
        self.handlers = Handlers(self.store, self.engine, self.cache)

    async def respond(self, inter: discord.Interaction, reply: Reply, *, ephemeral: bool = False):
        view = view_for(reply.keyboard, self)
        if inter.response.is_done():
            await inter.followup.send(reply.text, view=view or discord.utils.MISSING, ephemeral=ephemeral)
        else:
            await inter.response.send_message(reply.text, view=view, ephemeral=ephemeral)

    async def setup_hook(self):
        @self.tree.command(name="start", description="Show the watch menu")
        async def start(inter: discord.Interaction):
            await inter.response.send_message("Bot is live! Choose your option:", view=MainMenu(self))

        @self.tree.command(name="watch_add", description="Add a Market Cap watch step by step")
        async def watch_add(inter: discord.Interaction):
            await self.respond(inter, self.handlers.start_add(inter.user.id))

        @self.tree.command(name="watch_list", description="List your Market Cap watches")
        async def watch_list(inter: discord.Interaction):
            await self.respond(inter, self.handlers.list(inter.user.id))

        @self.tree.command(name="watch_remove", description="Remove a watch by its number in /watch_list")
        @app_commands.describe(index="Number shown in /watch_list")
        async def watch_remove(inter: discord.Interaction, index: int):
            await self.respond(inter, self.handlers.delete(inter.user.id, index))

        @self.tree.command(name="watch_clear", description="Remove all your watches")
        async def watch_clear(inter: discord.Interaction):
            await self.respond(inter, self.handlers.delete_all(inter.user.id))

        @self.tree.command(name="watch_cancel", description="Abort the watch you are adding")
        async def watch_cancel(inter: discord.Interaction):
            await self.respond(inter, self.handlers.cancel(inter.user.id))

        @self.tree.command(name="help", description="Show available options")
        async def help_(inter: discord.Interaction):
            await self.respond(inter, self.handlers.help(inter.user.id), ephemeral=True)

        await self.tree.sync()

    async def on_message(self, message: discord.Message):
        if message.author.bot or not message.content:
            return
        try:
            reply = await self.handlers.text(message.author.id, message.content)
        except Exception:
            log.exception(f"Failed to handle message from user:{message.author.id}")
            return
        if reply is None:
            return
        try:
            await message.channel.send(reply.text, view=view_for(reply.keyboard, self))
        except discord.HTTPException:
            log.exception("Failed to send reply")

    async def on_ready(self):
        guilds = ", ".join([f"{g.name}({g.id})" for g in self.guilds]) or "none"
        log.info(f"Logged in as {self.user} | Guilds: [{guilds}] | LOG_LEVEL={LOG_LEVEL} "
                 f"| poll={POLL_SECONDS}s delay={WATCH_DELAY_SECONDS}s notify_on_first={CHANGE_NOTIFY_ON_FIRST}")

    async def close(self):
        await self.scheduler.stop()
        await super().close()
