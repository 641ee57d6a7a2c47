from .groups import ListGroupsCommand
from .loading import LoadCommand, ReloadCommand, UnloadCommand
from .toggle import DisableCommand, EnableCommand

__all__ = [
    "DisableCommand",
    "EnableCommand",
    "ListGroupsCommand",
    "LoadCommand",
    "ReloadCommand",
    "UnloadCommand",
]
