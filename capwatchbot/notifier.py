import discord
from .errors import DeliveryFailed

class DiscordNotifier:
    """Delivers alert text to a watch owner as a direct message."""

    def __init__(self, client: discord.Client):
        self.client = client

    async def send(self, owner_id: int, text: str):
        try:
            user = self.client.get_user(owner_id) or await self.client.fetch_user(owner_id)
            await user.send(text)
        except discord.HTTPException as e:
            raise DeliveryFailed(f"user:{owner_id}: {e}") from e
