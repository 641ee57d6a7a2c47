from .eval import EvalCommand
from .help import HelpCommand
from .ping import PingCommand
from .prefix import PrefixCommand
from .unknown_command import UnknownCommandCommand

__all__ = ["EvalCommand", "HelpCommand", "PingCommand", "PrefixCommand", "UnknownCommandCommand"]
