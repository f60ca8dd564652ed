from .generation import command_generate
from .inspection import command_bake
from .targets import command_list_targets

__all__ = [
    "command_bake",
    "command_generate",
    "command_list_targets",
]
