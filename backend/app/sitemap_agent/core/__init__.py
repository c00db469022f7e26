"""
Core Location Module

Heuristic element resolution and the locator-driven actions built
on it, plus the shared error taxonomy and wait helpers.
"""

from .errors import (
    ErrorType,
    SiteMapAgentError,
    LocatorError,
    LocatorNotFoundError,
    execute_with_retry
)
from .probes import ElementSnapshot, Probe, ProbeKind, replay
from .locator_engine import LocatorEngine, LocatorOptions, build_probes
from .action_executor import SafeActionExecutor

__all__ = [
    "ErrorType",
    "SiteMapAgentError",
    "LocatorError",
    "LocatorNotFoundError",
    "execute_with_retry",
    "ElementSnapshot",
    "Probe",
    "ProbeKind",
    "replay",
    "LocatorEngine",
    "LocatorOptions",
    "build_probes",
    "SafeActionExecutor"
]
