"""Command implementations."""

from gh_subissue.commands.create import CreateCommand, CreateOptions
from gh_subissue.commands.edit import EditCommand, EditOptions
from gh_subissue.commands.list_cmd import ListCommand
from gh_subissue.commands.repos import ReposCommand, ReposOptions

__all__ = [
    "CreateCommand",
    "CreateOptions",
    "EditCommand",
    "EditOptions",
    "ListCommand",
    "ReposCommand",
    "ReposOptions",
]
