"""Hook pipeline: plugin interface, registry and built-in plugins."""

from strata.plugins.analytics import AnalyticsPlugin
from strata.plugins.auto_summarizer import AutoSummarizerPlugin
from strata.plugins.base import HookKind, Plugin
from strata.plugins.cost_tracker import CostTrackerPlugin
from strata.plugins.registry import HookExecutionError, HookRegistry, PluginError

__all__ = [
    "AnalyticsPlugin",
    "AutoSummarizerPlugin",
    "CostTrackerPlugin",
    "HookExecutionError",
    "HookKind",
    "HookRegistry",
    "Plugin",
    "PluginError",
]
