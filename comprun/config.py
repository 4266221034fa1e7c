import os
from dataclasses import dataclass, replace
from typing import Optional

from .errors import ArgumentError, NoSourceError
from .utils import OBJECT_SUFFIX, SOURCE_SUFFIX, as_local_path, strip_suffix


@dataclass(frozen=True)
class BuildConfig:
    source_path: str
    output_path: str
    compiler_flags: str = ""
    pipe_command: Optional[str] = None
    program_args: Optional[str] = None
    watch_interval: int = 0
    watch_pattern: Optional[str] = None
    verbose: bool = False

    @property
    def source_file(self) -> str:
        return self.source_path + SOURCE_SUFFIX

    @property
    def watching(self) -> bool:
        return self.watch_interval > 0

    def for_sibling(self, path: str) -> "BuildConfig":
        """Config for compiling a watch-pattern match to an object file.

        Siblings are usually helpers without a ``main``, so they are compiled
        with ``-c`` and never linked.
        """
        stem = as_local_path(strip_suffix(path))
        flags = f"{self.compiler_flags} -c".strip()
        return replace(
            self, source_path=stem, output_path=stem + OBJECT_SUFFIX, compiler_flags=flags
        )


def resolve_config(
    file: Optional[str],
    output: Optional[str] = None,
    compiler_flags: Optional[str] = None,
    pipe_command: Optional[str] = None,
    program_args: Optional[str] = None,
    watch_interval: Optional[int] = None,
    watch_pattern: Optional[str] = None,
    verbose: bool = False,
) -> BuildConfig:
    if not file:
        raise NoSourceError("No source file given")

    source_path = strip_suffix(file)
    if not os.path.isfile(source_path + SOURCE_SUFFIX):
        raise ArgumentError(f"{source_path}{SOURCE_SUFFIX} is not a file!")

    source_path = as_local_path(source_path)
    output_path = as_local_path(output or source_path)

    return BuildConfig(
        source_path=source_path,
        output_path=output_path,
        compiler_flags=compiler_flags or "",
        pipe_command=pipe_command or None,
        program_args=program_args or None,
        watch_interval=max(0, watch_interval or 0),
        watch_pattern=watch_pattern or None,
        verbose=verbose,
    )
