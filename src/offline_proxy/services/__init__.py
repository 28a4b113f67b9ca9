"""
Proxy services.

- StrategyEngine: cache-first and network-first retrieval
- LifecycleManager: install / activate / clear-all
- CommandChannel: administrative commands
- BackgroundTaskRunner: tagged background tasks
- OfflineProxyService: per-request orchestration
"""

from .background_tasks import BackgroundTaskRunner, TaskRecord
from .command_channel import CommandChannel, CommandResult, parse_command
from .lifecycle_manager import ActivationReport, InstallReport, LifecycleManager
from .proxy_service import OfflineProxyService
from .strategy_engine import StrategyEngine

__all__ = [
    "ActivationReport",
    "BackgroundTaskRunner",
    "CommandChannel",
    "CommandResult",
    "InstallReport",
    "LifecycleManager",
    "OfflineProxyService",
    "StrategyEngine",
    "TaskRecord",
    "parse_command",
]
