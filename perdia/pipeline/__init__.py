"""Runtime wiring for the CLI and batch jobs."""

from .bootstrap import bootstrap_runtime
from .context import RuntimeContext, RuntimePaths

__all__ = ["RuntimeContext", "RuntimePaths", "bootstrap_runtime"]
