"""
schedload - load modules on a schedule through loaders discovered at runtime.

A directive file lists which module to load, through which loader, and
when. Loaders are identified only by their class name; they appear while
the application runs (plugin finders, zip importers, import hooks), so
schedload samples the interpreter repeatedly and resolves each label at
the moment the schedule reaches it.

Quick Start:
    >>> import schedload
    >>> driver = schedload.start("schedule.txt")   # returns immediately
    >>> result = driver.wait(timeout=30)

    Or from the command line:

        python -m schedload --verbose schedule.txt app.py

Directive file:
    #delay=3000
    plugins.alpha   PluginFinder
    plugins.beta    PluginFinder
    #delay=2000
    json            default
"""

__version__ = "0.1.0"
__license__ = "MIT"

from schedload.config import DriverSettings, get_settings
from schedload.errors import (
    ArtifactNotFoundError,
    DirectiveFileError,
    SchedloadError,
)
from schedload.registry import LoaderRegistry, ResolutionPolicy
from schedload.runtime import (
    DiagnosticsReporter,
    ExecutionResult,
    ScheduledLoadingDriver,
    TimelineExecutor,
    start,
)
from schedload.timeline import parse, parse_text

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Entry points
    "ScheduledLoadingDriver",
    "start",
    # Components
    "DiagnosticsReporter",
    "ExecutionResult",
    "LoaderRegistry",
    "ResolutionPolicy",
    "TimelineExecutor",
    "parse",
    "parse_text",
    # Configuration
    "DriverSettings",
    "get_settings",
    # Errors
    "ArtifactNotFoundError",
    "DirectiveFileError",
    "SchedloadError",
]
