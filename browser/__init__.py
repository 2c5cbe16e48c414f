"""Adaptadores de navegador (Playwright/CDP)."""

from .cdp import BrowserConnection, ConnectionManager, ConnectionState, RetryPolicy
from .errors import (
    BrowserAutomationError,
    ConnectFailedError,
    ElementNotFoundError,
    LaunchTimeoutError,
    NoPagesFoundError,
    RetriesExhaustedError,
    TextNotFoundError,
    UnsupportedPlatformError,
    WaitCancelledError,
)
from .probe import BrowserVersionInfo, probe_endpoint
from .process import ProcessState, ProcessSupervisor, SupervisedProcess

__all__ = [
    "BrowserAutomationError",
    "BrowserConnection",
    "BrowserVersionInfo",
    "ConnectFailedError",
    "ConnectionManager",
    "ConnectionState",
    "ElementNotFoundError",
    "LaunchTimeoutError",
    "NoPagesFoundError",
    "ProcessState",
    "ProcessSupervisor",
    "RetriesExhaustedError",
    "RetryPolicy",
    "SupervisedProcess",
    "TextNotFoundError",
    "UnsupportedPlatformError",
    "WaitCancelledError",
    "probe_endpoint",
]
