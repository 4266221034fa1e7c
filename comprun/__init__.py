"""comprun: compile a C source file, run it, and optionally repeat on change.

Exports:
- app, main: Typer CLI entrypoints (from comprun.cli)
- BuildConfig, resolve_config: argument resolution (from comprun.config)
- run_cycle, compile_source, GccCompiler, SubprocessRunner: one compile+run cycle (from comprun.runner)
- Watcher, watch_loop, WatchBaseline, has_changed_since: polling watch mode (from comprun.watch)
"""

from .cli import app, main  # noqa: F401
from .config import BuildConfig, resolve_config  # noqa: F401
from .errors import CycleResult, ExitCode  # noqa: F401
from .runner import GccCompiler, SubprocessRunner, compile_source, run_cycle  # noqa: F401
from .watch import Watcher, WatchBaseline, has_changed_since, watch_loop  # noqa: F401

__all__ = [
    "app",
    "main",
    "BuildConfig",
    "resolve_config",
    "CycleResult",
    "ExitCode",
    "GccCompiler",
    "SubprocessRunner",
    "compile_source",
    "run_cycle",
    "Watcher",
    "WatchBaseline",
    "has_changed_since",
    "watch_loop",
]
