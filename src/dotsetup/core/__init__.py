"""Task contract, execution context and shared value types."""

from dotsetup.core.errors import SetupError, UnsupportedPlatformError
from dotsetup.core.types import TaskCheckResult, TaskExecutionResult

__all__ = ["SetupError", "TaskCheckResult", "TaskExecutionResult", "UnsupportedPlatformError"]
