import os
import time
import fnmatch
import logging
import tempfile
import threading
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence, Tuple

import click
import typer
from watchdog.utils.dirsnapshot import DirectorySnapshot
from watchdog.utils.patterns import filter_paths

from .config import BuildConfig
from .errors import CycleResult
from .runner import Compiler, ProcessRunner, compile_source, run_cycle
from .utils import SOURCE_SUFFIX, SUCCESS, get_mtime, same_file

logger = logging.getLogger(__name__)

_GLOB_CHARS = set("*?[")


def has_changed_since(path: str, baseline: float) -> bool:
    """True when ``path`` was modified strictly after ``baseline``.

    Timestamp polling only; a missing file never counts as changed.
    """
    mtime = get_mtime(path)
    return mtime is not None and mtime > baseline


class WatchBaseline:
    """Last-checked timestamp, kept as the mtime of a transient marker file.

    Using a file keeps the baseline on the same clock as the watched sources.
    """

    def __init__(self, now: Optional[float] = None, marker: Optional[Path] = None):
        if marker is None:
            fd, name = tempfile.mkstemp(prefix=".comprun-", suffix=".stamp")
            os.close(fd)
            marker = Path(name)
        else:
            marker.touch()
        self.marker = marker
        self.advance(now)

    @property
    def timestamp(self) -> float:
        return self.marker.stat().st_mtime

    def advance(self, now: Optional[float] = None) -> None:
        os.utime(self.marker, None if now is None else (now, now))

    def close(self) -> None:
        try:
            self.marker.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove baseline marker {self.marker}: {e}")

    def __enter__(self) -> "WatchBaseline":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def split_pattern(pattern: str) -> Tuple[Path, Tuple[str, ...], bool]:
    """Split a watch pattern into (scan root, glob segments, recursive).

    - an existing directory is scanned recursively for every source file
    - a glob is scanned from its longest non-glob prefix; every remaining
      segment must match, and ``**`` spans any number of directories
    - anything else is matched by name inside its parent directory
    """
    path = Path(pattern).expanduser()
    if path.is_dir():
        return path, ("**", "*" + SOURCE_SUFFIX), True

    parts = path.parts
    root_parts = []
    for part in parts:
        if _GLOB_CHARS & set(part):
            break
        root_parts.append(part)
    glob_parts = tuple(parts[len(root_parts):])
    if not glob_parts:
        return path.parent, (path.name,), False

    root = Path(*root_parts) if root_parts else Path(".")
    recursive = "**" in glob_parts or len(glob_parts) > 1
    return root, glob_parts, recursive


def match_segments(parts: Sequence[str], globs: Sequence[str]) -> bool:
    """Anchored glob match of relative path segments; ``**`` matches zero or more."""
    if not globs:
        return not parts
    head, rest = globs[0], globs[1:]
    if head == "**":
        return any(match_segments(parts[i:], rest) for i in range(len(parts) + 1))
    return (
        bool(parts)
        and fnmatch.fnmatchcase(parts[0], head)
        and match_segments(parts[1:], rest)
    )


def iter_pattern_sources(pattern: str) -> Iterator[Tuple[str, float]]:
    """Yield (path, mtime) for every source file matching ``pattern``."""
    root, globs, recursive = split_pattern(pattern)
    if not root.is_dir():
        logger.warning(f"Watch pattern root is not a directory: {root}")
        return
    try:
        snapshot = DirectorySnapshot(str(root), recursive=recursive)
    except OSError as e:
        logger.warning(f"Failed to scan {root}: {e}")
        return

    files = [p for p in snapshot.paths if p != str(root) and not snapshot.isdir(p)]
    # filter_paths only anchors the file name; directories are checked below
    for path in sorted(filter_paths(files, included_patterns=[globs[-1]])):
        if not path.endswith(SOURCE_SUFFIX):
            continue
        relative = os.path.relpath(path, str(root)).split(os.sep)
        if match_segments(relative, globs):
            yield path, snapshot.mtime(path)


class Watcher:
    """Re-run the compile/run cycle whenever the source file changes.

    Each tick checks the source against the baseline, runs at most one cycle,
    compiles changed watch-pattern siblings and then advances the baseline.
    The loop only stops once ``stop_event`` is set.
    """

    def __init__(
        self,
        cfg: BuildConfig,
        compiler: Optional[Compiler] = None,
        runner: Optional[ProcessRunner] = None,
        stop_event: Optional[threading.Event] = None,
        sleep: Optional[Callable[[float], object]] = None,
        clock: Callable[[], float] = time.time,
        settle_s: float = 0.2,
        clear_screen: bool = False,
    ) -> None:
        self.cfg = cfg
        self.compiler = compiler
        self.runner = runner
        self.stop_event = stop_event or threading.Event()
        self.sleep = sleep or self.stop_event.wait
        self.clock = clock
        self.settle_s = settle_s
        self.clear_screen = clear_screen
        self.baseline: Optional[WatchBaseline] = None

    def stop(self) -> None:
        self.stop_event.set()

    def tick(self) -> Optional[CycleResult]:
        if self.baseline is None:
            raise RuntimeError("Watcher.tick() called outside of Watcher.run()")
        now = self.clock()
        since = self.baseline.timestamp
        result = None

        if has_changed_since(self.cfg.source_file, since):
            if self.clear_screen:
                click.clear()
            logger.log(
                SUCCESS,
                typer.style(
                    f"Updated file {self.cfg.source_file} at {time.strftime('%c')}",
                    fg=typer.colors.GREEN,
                ),
            )
            if self.settle_s:
                time.sleep(self.settle_s)
            result = run_cycle(self.cfg, self.compiler, self.runner)
        else:
            logger.info(f"No change in {self.cfg.source_file}")

        if self.cfg.watch_pattern:
            self.compile_siblings(since)

        # Edits saved while the cycle ran are newer than ``now``
        self.baseline.advance(now)
        return result

    def compile_siblings(self, since: float) -> None:
        for path, mtime in iter_pattern_sources(self.cfg.watch_pattern):
            if mtime <= since or same_file(path, self.cfg.source_file):
                continue
            sibling = self.cfg.for_sibling(path)
            if compile_source(sibling, self.compiler):
                logger.log(SUCCESS, f" - Compiled {path}")
            else:
                logger.error(f" - Compile Error in {path}")

    def run(self) -> None:
        logger.log(
            SUCCESS,
            typer.style(
                f"Waiting for update in {self.cfg.source_file}", fg=typer.colors.BLUE
            ),
        )
        self.baseline = WatchBaseline(now=self.clock())
        try:
            while not self.stop_event.is_set():
                self.tick()
                self.sleep(self.cfg.watch_interval)
        finally:
            self.baseline.close()
            self.baseline = None


def watch_loop(cfg: BuildConfig, **kwargs) -> None:
    Watcher(cfg, **kwargs).run()
