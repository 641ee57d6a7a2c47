import logging
from collections.abc import Iterable
from typing import Any

import hikari

from config.settings import settings

from ..commands.registry import CommandRegistry
from ..errors import CommandoError
from .dispatcher import CommandDispatcher
from .event_system import EventSystem
from .guild import GuildSettingsHelper, GuildState
from .utils import guild_id_of

logger = logging.getLogger(__name__)

DEFAULT_INTENTS = (
    hikari.Intents.GUILDS
    | hikari.Intents.GUILD_MEMBERS
    | hikari.Intents.ALL_MESSAGES
    | hikari.Intents.MESSAGE_CONTENT
)


class CommandoClient:
    def __init__(
        self,
        token: str | None = None,
        *,
        command_prefix: str | None = None,
        owner_ids: Iterable[int] | None = None,
        invite: str | None = None,
        command_editable_duration: int | None = None,
        non_command_editable: bool | None = None,
        intents: hikari.Intents = DEFAULT_INTENTS,
        provider: Any = None,
    ) -> None:
        self._token = token or settings.discord_token
        if not self._token:
            raise CommandoError("A bot token must be passed or set as DISCORD_TOKEN.")
        self.hikari_bot = hikari.GatewayBot(token=self._token, intents=intents)

        self.owner_ids: set[int] = {int(owner) for owner in (owner_ids if owner_ids is not None else settings.owner_ids)}
        self.invite = invite if invite is not None else settings.invite
        self.command_editable_duration = (
            command_editable_duration if command_editable_duration is not None else settings.command_editable_duration
        )
        self.non_command_editable = (
            non_command_editable if non_command_editable is not None else settings.non_command_editable
        )
        self._default_prefix = command_prefix if command_prefix is not None else settings.command_prefix
        self._command_prefix: str | None = None

        # Initialize systems
        self.events = EventSystem()
        self.registry = CommandRegistry(self)
        self.dispatcher = CommandDispatcher(self, self.registry)
        self.provider: Any = provider
        self._guilds: dict[int, GuildState] = {}

        self.is_ready = False
        self._setup_event_listeners()

    def _setup_event_listeners(self) -> None:
        self.hikari_bot.subscribe(hikari.StartedEvent, self._on_started)
        self.hikari_bot.subscribe(hikari.StoppingEvent, self._on_stopping)
        self.hikari_bot.subscribe(hikari.MessageCreateEvent, self._on_message_create)
        self.hikari_bot.subscribe(hikari.MessageUpdateEvent, self._on_message_update)

    async def _on_started(self, event: hikari.StartedEvent) -> None:
        logger.info(f"Client is ready! Logged in as {self.user}")
        self.is_ready = True
        if self.provider is not None:
            await self._init_provider()
        await self.events.emit("ready", self)

    async def _on_stopping(self, event: hikari.StoppingEvent) -> None:
        logger.info("Client is stopping...")
        await self.events.emit("stopping", self)
        if self.provider is not None:
            try:
                await self.provider.destroy()
            except Exception as e:
                logger.error(f"Error destroying settings provider: {e}")

    async def _on_message_create(self, event: hikari.MessageCreateEvent) -> None:
        try:
            await self.dispatcher.handle_message(event.message)
        except Exception as e:
            logger.error(f"Error handling message {event.message.id}: {e}")

    async def _on_message_update(self, event: hikari.MessageUpdateEvent) -> None:
        try:
            await self.dispatcher.handle_edit(event.message, event.old_message)
        except Exception as e:
            logger.error(f"Error handling edit of message {event.message.id}: {e}")

    @property
    def command_prefix(self) -> str:
        """The global prefix; an empty string means commands are only invoked by mention."""
        if self._command_prefix is None:
            return self._default_prefix
        return self._command_prefix

    async def set_command_prefix(self, prefix: str | None) -> None:
        """Set the global prefix; ``None`` restores the configured default."""
        self._command_prefix = prefix
        logger.debug(f"Global command prefix set to {self.command_prefix!r}")
        await self.events.emit("command_prefix_change", None, prefix)

    @property
    def user(self) -> hikari.OwnUser | None:
        return self.hikari_bot.get_me()

    @property
    def rest(self) -> hikari.api.RESTClient:
        return self.hikari_bot.rest

    @property
    def cache(self) -> hikari.api.Cache:
        return self.hikari_bot.cache

    def is_owner(self, user: hikari.SnowflakeishOr[hikari.PartialUser]) -> bool:
        return int(getattr(user, "id", user)) in self.owner_ids

    def guild_state(self, guild: Any) -> GuildState:
        """Return the command state kept for a guild (object or ID)."""
        guild_id = guild_id_of(guild)
        if guild_id is None:
            raise ValueError("A guild must be specified.")
        state = self._guilds.get(guild_id)
        if state is None:
            state = self._guilds[guild_id] = GuildState(self, guild_id)
        return state

    def guild_settings(self, guild: Any) -> GuildSettingsHelper:
        """Settings helper for a guild, or for global settings when ``guild`` is ``None``."""
        guild_id = guild_id_of(guild)
        if guild_id is None:
            return GuildSettingsHelper(self, None)
        return self.guild_state(guild_id).settings

    async def set_provider(self, provider: Any) -> None:
        """Use ``provider`` to persist settings, initialising it now if the client is ready."""
        self.provider = provider
        if self.is_ready:
            await self._init_provider()

    async def _init_provider(self) -> None:
        logger.debug("Initializing settings provider...")
        await self.provider.init(self)
        logger.info("Settings provider initialized")
        await self.events.emit("provider_ready", self.provider)

    def run(self) -> None:
        try:
            logger.info("Starting client...")
            self.hikari_bot.run()
        except KeyboardInterrupt:
            logger.info("Client stopped by user")
        except Exception as e:
            logger.error(f"Client crashed: {e}")
            raise

    async def close(self) -> None:
        await self.hikari_bot.close()
