"""Utility functions for the command framework."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

import hikari

MESSAGE_LIMIT = 2000

PERMISSION_NAMES: dict[hikari.Permissions, str] = {
    hikari.Permissions.CREATE_INSTANT_INVITE: "Create Instant Invite",
    hikari.Permissions.KICK_MEMBERS: "Kick Members",
    hikari.Permissions.BAN_MEMBERS: "Ban Members",
    hikari.Permissions.ADMINISTRATOR: "Administrator",
    hikari.Permissions.MANAGE_CHANNELS: "Manage Channels",
    hikari.Permissions.MANAGE_GUILD: "Manage Server",
    hikari.Permissions.ADD_REACTIONS: "Add Reactions",
    hikari.Permissions.VIEW_AUDIT_LOG: "View Audit Log",
    hikari.Permissions.VIEW_CHANNEL: "View Channels",
    hikari.Permissions.SEND_MESSAGES: "Send Messages",
    hikari.Permissions.SEND_TTS_MESSAGES: "Send TTS Messages",
    hikari.Permissions.MANAGE_MESSAGES: "Manage Messages",
    hikari.Permissions.EMBED_LINKS: "Embed Links",
    hikari.Permissions.ATTACH_FILES: "Attach Files",
    hikari.Permissions.READ_MESSAGE_HISTORY: "Read Message History",
    hikari.Permissions.MENTION_ROLES: "Mention @everyone, @here, and All Roles",
    hikari.Permissions.USE_EXTERNAL_EMOJIS: "Use External Emojis",
    hikari.Permissions.CONNECT: "Connect",
    hikari.Permissions.SPEAK: "Speak",
    hikari.Permissions.MUTE_MEMBERS: "Mute Members",
    hikari.Permissions.DEAFEN_MEMBERS: "Deafen Members",
    hikari.Permissions.MOVE_MEMBERS: "Move Members",
    hikari.Permissions.CHANGE_NICKNAME: "Change Nickname",
    hikari.Permissions.MANAGE_NICKNAMES: "Manage Nicknames",
    hikari.Permissions.MANAGE_ROLES: "Manage Roles",
    hikari.Permissions.MANAGE_WEBHOOKS: "Manage Webhooks",
    hikari.Permissions.MANAGE_THREADS: "Manage Threads",
    hikari.Permissions.MODERATE_MEMBERS: "Timeout Members",
}

_MARKDOWN_RE = re.compile(r"([\\*_`~|])")


def guild_id_of(guild: Any) -> int | None:
    """Normalise a guild, snowflake or ``None`` into an optional integer ID."""
    if guild is None:
        return None
    return int(getattr(guild, "id", guild))


def calculate_member_permissions(
    member: hikari.Member, guild: hikari.Guild, channel: hikari.GuildChannel | None = None
) -> hikari.Permissions:
    """
    Calculate the effective permissions for a member in a guild or channel.

    Args:
        member: The guild member to calculate permissions for
        guild: The guild the member belongs to
        channel: Optional channel to include channel overwrites

    Returns:
        The calculated permissions for the member
    """
    if guild.owner_id == member.id:
        return hikari.Permissions.all_permissions()

    # @everyone role has the same ID as the guild
    everyone_role = guild.get_role(guild.id)
    permissions = everyone_role.permissions if everyone_role else hikari.Permissions.NONE

    for role_id in member.role_ids:
        role = guild.get_role(role_id)
        if role:
            permissions |= role.permissions

    if permissions & hikari.Permissions.ADMINISTRATOR:
        return hikari.Permissions.all_permissions()

    if channel is not None and getattr(channel, "permission_overwrites", None):
        overwrites = channel.permission_overwrites

        everyone_overwrite = overwrites.get(guild.id)
        if everyone_overwrite:
            permissions &= ~everyone_overwrite.deny
            permissions |= everyone_overwrite.allow

        allow = hikari.Permissions.NONE
        deny = hikari.Permissions.NONE
        for role_id in member.role_ids:
            role_overwrite = overwrites.get(role_id)
            if role_overwrite:
                allow |= role_overwrite.allow
                deny |= role_overwrite.deny
        permissions &= ~deny
        permissions |= allow

        member_overwrite = overwrites.get(member.id)
        if member_overwrite:
            permissions &= ~member_overwrite.deny
            permissions |= member_overwrite.allow

    return permissions


def format_permissions(permissions: hikari.Permissions) -> list[str]:
    """Format permissions into a list of human-readable permission names."""
    return [name for flag, name in PERMISSION_NAMES.items() if permissions & flag]


def escape_markdown(text: str) -> str:
    return _MARKDOWN_RE.sub(r"\\\1", text)


def disambiguation(items: Iterable[Any], label: str, attribute: str | None = "name") -> str:
    """Build the "please be more specific" reply for an ambiguous search."""
    names = []
    for item in items:
        value = getattr(item, attribute) if attribute else item
        names.append(f'"{str(value).replace(" ", chr(0xA0))}"')
    return f"Multiple {label} found, please be more specific: {', '.join(names)}"


def split_message(text: str, max_length: int = MESSAGE_LIMIT) -> list[str]:
    """Split text on line boundaries so every chunk fits in a single message."""
    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > max_length:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:max_length])
            line = line[max_length:]

        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > max_length:
            chunks.append(current)
            current = line
        else:
            current = candidate

    if current:
        chunks.append(current)
    return chunks


def build_usage(command: str, prefix: str | None = None, user: hikari.User | None = None) -> str:
    """
    Build a usage hint such as ``!ping`` or ``@Bot ping``.

    Spaces are replaced with non-breaking spaces so the hint never wraps.
    """
    nbcmd = command.replace(" ", "\xa0")
    if not prefix and not user:
        return f"`{nbcmd}`"

    prefix_part = ""
    if prefix:
        if len(prefix) > 1 and not prefix.endswith(">"):
            prefix = f"{prefix}\xa0"
        prefix = prefix.replace(" ", "\xa0")
        prefix_part = f"`{prefix}{nbcmd}`"

    mention_part = ""
    if user:
        mention_part = f"`@{user.username.replace(' ', chr(0xA0))}\xa0{nbcmd}`"

    joiner = " or " if prefix and user else ""
    return f"{prefix_part}{joiner}{mention_part}"
