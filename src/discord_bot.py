"""
emotevote Discord Bot

Maintains the Discord connection for the emote popularity vote.
Translates gateway callbacks into vote-core events and renders the core's
replies back into Discord messages. Registry snapshots persist to Postgres
when DATABASE_URL is set.
"""

import asyncio
import os
from typing import Optional

import asyncpg
import discord
from dotenv import load_dotenv

from emotes import (
    CommandDispatcher,
    CandidateRegistry,
    EventRouter,
    RenderSink,
    RoleAuthorizer,
    VoteConfig,
    VoteReconciler,
)
from emotes.events import (
    Attachment,
    MessageDeleted,
    MessageReceived,
    PostCandidate,
    ReactionAdded,
    ReactionRemoved,
    RetractCandidate,
    RoleRef,
    SeedVote,
    SendStats,
    SendText,
)
from emotes.scheduler import SnapshotScheduler
from emotes.store import RegistryStore

load_dotenv()

import logging

# Discord message length limit
DISCORD_MAX_LENGTH = 2000

# Embed description limit
EMBED_MAX_LENGTH = 4096

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("emotevote")


def to_message_event(message: discord.Message) -> MessageReceived:
    """Build a MessageReceived from a discord.py message."""
    roles = []
    if isinstance(message.author, discord.Member):
        roles = [RoleRef(id=role.id, name=role.name) for role in message.author.roles]

    return MessageReceived(
        id=message.id,
        author_id=message.author.id,
        guild_id=message.guild.id if message.guild else None,
        channel_id=message.channel.id,
        text=message.content or "",
        attachments=[
            Attachment(
                url=a.url,
                filename=a.filename,
                size=a.size,
                width=a.width,
                height=a.height,
            )
            for a in message.attachments
        ],
        roles=roles,
        author_name=message.author.display_name,
    )


class DiscordRenderSink(RenderSink):
    """Renders vote-core requests as Discord messages."""

    def __init__(self, client: discord.Client, vote_symbol: str):
        self.client = client
        self.vote_symbol = vote_symbol

    async def _channel(self, channel_id: int) -> discord.abc.Messageable:
        channel = self.client.get_channel(channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(channel_id)
        return channel

    async def send_text(self, request: SendText) -> None:
        body = request.body[:DISCORD_MAX_LENGTH]
        if request.recipient_id is not None:
            try:
                user = self.client.get_user(request.recipient_id)
                if user is None:
                    user = await self.client.fetch_user(request.recipient_id)
                await user.send(body)
                return
            except discord.HTTPException as e:
                # DMs closed; fall back to the channel
                logger.info(f"Could not DM user {request.recipient_id}: {e}")

        channel = await self._channel(request.channel_id)
        await channel.send(body)

    async def send_stats(self, request: SendStats) -> None:
        lines = []
        for rank, entry in enumerate(request.entries, start=1):
            line = f"**{rank}.** {entry.name}: {entry.count} vote(s)"
            if entry.submitter:
                line += f" from {entry.submitter}"
            lines.append(line)

        description = "\n".join(lines) or "No candidates"
        if len(description) > EMBED_MAX_LENGTH:
            description = description[: EMBED_MAX_LENGTH - 20] + "\n\n[...truncated]"

        embed = discord.Embed(
            title="Emote standings",
            description=description,
            color=discord.Color.blue(),
        )
        channel = await self._channel(request.channel_id)
        await channel.send(embed=embed)

    async def post_candidate(self, request: PostCandidate) -> int:
        embed = discord.Embed(title=request.name, color=discord.Color.green())
        embed.set_image(url=request.image_url)
        if request.submitter_name:
            embed.set_footer(text=f"Submitted by {request.submitter_name}")

        channel = await self._channel(request.channel_id)
        message = await channel.send(embed=embed)
        return message.id

    async def seed_vote(self, request: SeedVote) -> None:
        channel = await self._channel(request.channel_id)
        await channel.get_partial_message(request.message_id).add_reaction(self.vote_symbol)

    async def retract_candidate(self, request: RetractCandidate) -> None:
        channel = await self._channel(request.channel_id)
        await channel.get_partial_message(request.message_id).delete()


class EmoteVoteBot(discord.Client):
    """Discord client that feeds the emote vote core."""

    def __init__(self, config: Optional[VoteConfig] = None):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.messages = True
        intents.reactions = True

        super().__init__(intents=intents)

        self.config = config or VoteConfig.from_env()
        self.registry = CandidateRegistry(self.config.max_submissions_per_user)
        self.sink = DiscordRenderSink(self, self.config.vote_symbol)
        self.reconciler = VoteReconciler(self.registry, self.config.vote_symbol)
        self.dispatcher = CommandDispatcher(
            self.registry, RoleAuthorizer(self.config), self.sink, self.config
        )
        self.router = EventRouter(self.registry, self.dispatcher, self.reconciler)
        self.db_pool: Optional[asyncpg.Pool] = None
        self.snapshots: Optional[SnapshotScheduler] = None

    async def setup_hook(self):
        """Called when the bot is starting up."""
        database_url = os.getenv("DATABASE_URL")
        logger.info(f"Setup: DATABASE_URL={'set' if database_url else 'missing'}")
        logger.info(
            f"Setup: prefix={self.config.prefix!r} vote_symbol={self.config.vote_symbol!r}"
        )

        if database_url:
            try:
                self.db_pool = await asyncpg.create_pool(database_url)
                store = RegistryStore(self.db_pool)
                await store.ensure_schema()
                restored = 0
                for snapshot in await store.load_snapshots():
                    try:
                        restored += self.registry.restore_state(snapshot)
                    except (KeyError, TypeError, ValueError) as e:
                        logger.error(f"Skipping unreadable scope snapshot: {e}", exc_info=True)
                logger.info(f"Restored {restored} candidate(s) from database")

                self.snapshots = SnapshotScheduler(
                    self.registry, store, self.config.snapshot_interval_seconds
                )
                self.snapshots.start()
            except Exception as e:
                logger.error(f"Failed to initialize persistence: {e}", exc_info=True)
                logger.warning("Running without persistence; votes are lost on restart")
        else:
            logger.warning("No DATABASE_URL, registry is in-memory only")

        self.router.start()

    async def on_ready(self):
        """Called when the bot has connected to Discord."""
        self.reconciler.bot_user_id = self.user.id
        print(f"Logged in as {self.user} (ID: {self.user.id})")
        print(f"Connected to {len(self.guilds)} guild(s)")

    async def on_message(self, message: discord.Message):
        # Ignore messages from the bot itself
        if message.author == self.user:
            return
        self.router.submit(to_message_event(message))

    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent):
        self.router.submit(
            ReactionAdded(
                message_id=payload.message_id,
                reactor_id=payload.user_id,
                emoji_symbol=str(payload.emoji),
            )
        )

    async def on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent):
        self.router.submit(
            ReactionRemoved(
                message_id=payload.message_id,
                reactor_id=payload.user_id,
                emoji_symbol=str(payload.emoji),
            )
        )

    async def on_raw_message_delete(self, payload: discord.RawMessageDeleteEvent):
        self.router.submit(MessageDeleted(message_id=payload.message_id))

    async def close(self):
        """Clean up resources on shutdown."""
        await self.router.stop()
        if self.snapshots:
            self.snapshots.stop()
            await self.snapshots.flush()
        if self.db_pool:
            await self.db_pool.close()
        await super().close()


async def main():
    """Run the bot."""
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        print("Error: DISCORD_BOT_TOKEN environment variable not set")
        print("Please set it in your .env file")
        return

    bot = EmoteVoteBot()
    await bot.start(token)


if __name__ == "__main__":
    asyncio.run(main())
