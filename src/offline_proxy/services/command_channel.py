"""
Command Channel

Administrative commands accepted by the proxy:

    activate-now   force activation, even while install is incomplete
    clear-all      delete every cache generation

The legacy message names ``skipWaiting`` and ``clearCache`` are accepted as
aliases. Anything else is rejected with InvalidCommandError.
"""

from dataclasses import dataclass, field
from typing import Any

from src.core.config.constants import ADMIN_COMMAND_ALIASES, AdminCommand, Stage
from src.core.exceptions import InvalidCommandError
from src.core.logging.logger import get_logger, log_stage
from src.offline_proxy.services.lifecycle_manager import LifecycleManager

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of one dispatched command."""

    command: AdminCommand
    deleted: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"command": self.command.value, "deleted": list(self.deleted), "kept": list(self.kept)}


def parse_command(raw: str) -> AdminCommand:
    """
    Resolve a command name or alias.

    Raises:
        InvalidCommandError: Unknown command
    """
    name = (raw or "").strip()
    if name in ADMIN_COMMAND_ALIASES:
        return ADMIN_COMMAND_ALIASES[name]
    try:
        return AdminCommand(name)
    except ValueError:
        raise InvalidCommandError(
            f"Unknown command '{name}'",
            details={
                "command": name,
                "supported_commands": [c.value for c in AdminCommand] + sorted(ADMIN_COMMAND_ALIASES),
            },
        )


class CommandChannel:
    """Dispatches administrative commands to the lifecycle manager."""

    def __init__(self, lifecycle: LifecycleManager):
        self.lifecycle = lifecycle

    async def dispatch(self, command: str | AdminCommand) -> CommandResult:
        """
        Run a command to completion.

        Raises:
            InvalidCommandError: Unknown command
            CacheStoreError: The store failed while deleting generations
        """
        resolved = command if isinstance(command, AdminCommand) else parse_command(command)
        log_stage(logger, Stage.ADMIN_COMMAND, "Command received", command=resolved.value)

        if resolved is AdminCommand.ACTIVATE_NOW:
            report = await self.lifecycle.activate(force=True)
            return CommandResult(command=resolved, deleted=report.deleted, kept=report.kept)

        deleted = await self.lifecycle.clear_all()
        return CommandResult(command=resolved, deleted=deleted)
