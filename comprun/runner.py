import os
import shlex
import logging
import subprocess
from typing import List, Optional, Protocol

from .config import BuildConfig
from .errors import (
    CompileError,
    CycleError,
    CycleResult,
    RuntimeExecutionError,
    RuntimeOutputMissingError,
)
from .utils import SUCCESS, wait_for_file

logger = logging.getLogger(__name__)


class Compiler(Protocol):
    def compile(self, source_file: str, output_path: str, flags: str) -> bool:
        ...


class ProcessRunner(Protocol):
    def run(self, argv: List[str], pipe_command: Optional[str] = None) -> int:
        ...


class GccCompiler:
    """Invoke a gcc-compatible compiler: ``<cc> <flags> <source> -o <output>``."""

    def __init__(self, cc: Optional[str] = None) -> None:
        self.cc = cc or os.environ.get("CC") or "gcc"

    def command(self, source_file: str, output_path: str, flags: str) -> List[str]:
        return [self.cc, *shlex.split(flags or ""), source_file, "-o", output_path]

    def compile(self, source_file: str, output_path: str, flags: str) -> bool:
        cmd = self.command(source_file, output_path, flags)
        logger.info(f"Compiler: {shlex.join(cmd)}")
        try:
            return subprocess.run(cmd).returncode == 0
        except OSError as e:
            logger.error(f"Unable to start compiler {self.cc!r}: {e}")
            return False


class SubprocessRunner:
    """Run the executable with inherited stdio, optionally fed by a shell pipe."""

    def run(self, argv: List[str], pipe_command: Optional[str] = None) -> int:
        if not pipe_command:
            return subprocess.run(argv).returncode

        upstream = subprocess.Popen(
            pipe_command, shell=True, stdout=subprocess.PIPE, stderr=subprocess.STDOUT
        )
        try:
            proc = subprocess.Popen(argv, stdin=upstream.stdout)
        except OSError:
            upstream.kill()
            upstream.wait()
            raise
        finally:
            # Only the executable holds the read end now
            upstream.stdout.close()

        returncode = proc.wait()
        upstream_code = upstream.wait()
        if upstream_code != 0:
            logger.warning(f"Pipe command exited {upstream_code}: {pipe_command}")
        # Shell pipeline convention: the last command decides
        return returncode


def compile_source(cfg: BuildConfig, compiler: Optional[Compiler] = None) -> bool:
    compiler = compiler or GccCompiler()
    return compiler.compile(cfg.source_file, cfg.output_path, cfg.compiler_flags)


def run_command(cfg: BuildConfig) -> List[str]:
    return [cfg.output_path, *shlex.split(cfg.program_args or "")]


def describe_run(cfg: BuildConfig) -> str:
    cmd = shlex.join(run_command(cfg))
    if cfg.pipe_command:
        return f"{cfg.pipe_command} | {cmd}"
    return cmd


def _compile_and_run(
    cfg: BuildConfig,
    compiler: Optional[Compiler],
    runner: ProcessRunner,
    grace_retries: int,
) -> None:
    if not compile_source(cfg, compiler):
        raise CompileError(" - Compile Error.")
    logger.log(SUCCESS, " - Compiled Successfully.")

    if not wait_for_file(cfg.output_path, retries=grace_retries):
        raise RuntimeOutputMissingError(
            f"Unable to find output file {cfg.output_path}!"
        )

    logger.log(SUCCESS, f"Command: {describe_run(cfg)}\n - Running...")
    try:
        returncode = runner.run(run_command(cfg), cfg.pipe_command)
    except OSError as e:
        raise RuntimeExecutionError(
            f"Runtime Error - cannot execute {cfg.output_path}: {e}", returncode=-1
        )

    if returncode != 0:
        raise RuntimeExecutionError(
            f"Runtime Error {returncode} - {describe_run(cfg)}", returncode=returncode
        )


def run_cycle(
    cfg: BuildConfig,
    compiler: Optional[Compiler] = None,
    runner: Optional[ProcessRunner] = None,
    grace_retries: int = 5,
) -> CycleResult:
    """Compile ``cfg.source_file`` then run the produced executable once.

    Failures are logged and reported through the returned CycleResult.
    """
    runner = runner or SubprocessRunner()
    try:
        _compile_and_run(cfg, compiler, runner, grace_retries)
    except CycleError as e:
        logger.error(str(e))
        return e.result
    logger.log(SUCCESS, "\n\n ---- DONE ----")
    return CycleResult.COMPILED_AND_RAN
