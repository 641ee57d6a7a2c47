from __future__ import annotations

from typing import TYPE_CHECKING

import hikari

from ..core.utils import calculate_member_permissions

if TYPE_CHECKING:
    from ..commands.message import CommandMessage


def is_admin(message: CommandMessage) -> bool:
    """Whether the author has the Administrator permission in the message's guild."""
    guild = message.guild
    member = message.member
    if guild is None or member is None:
        return False
    permissions = calculate_member_permissions(member, guild)
    return bool(permissions & hikari.Permissions.ADMINISTRATOR)


def is_admin_or_owner(message: CommandMessage) -> bool:
    """Administrators in guilds and owners anywhere; owners only in DMs."""
    if message.guild_id is None:
        return message.client.is_owner(message.author)
    return is_admin(message) or message.client.is_owner(message.author)
