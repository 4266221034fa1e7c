import logging
from typing import List, Optional

import click
import typer
from typer.core import TyperCommand

from .config import resolve_config
from .errors import ArgumentError, ExitCode
from .runner import GccCompiler, SubprocessRunner, run_cycle
from .utils import setup_logging
from .watch import watch_loop

logger = logging.getLogger(__name__)

EPILOG = """\
Examples:

  comprun -f some_file                   compile some_file.c to ./some_file and run it

  comprun -f some_file -o other_file     compile to ./other_file instead

  comprun -f some_file -c "cat ./foo"    pipe the output of a command into the program

  comprun -f some_file -s "-Wall -O0"    pass extra flags to the compiler

  comprun -f some_file -w 2              recompile and run whenever some_file.c changes
"""


class HelpOnUsageError(TyperCommand):
    """Show help and exit 0 for a flag missing its value.

    Unknown flags and stray arguments are collected into ``ctx.args`` and
    handled by ``main``.
    """

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        try:
            return super().parse_args(ctx, args)
        except (click.NoSuchOption, click.BadOptionUsage):
            typer.echo(ctx.get_help())
            ctx.exit(ExitCode.OK)


app = typer.Typer(add_completion=False, rich_markup_mode=None)


@app.command(
    cls=HelpOnUsageError,
    epilog=EPILOG,
    context_settings={
        "help_option_names": ["-h", "--help"],
        "allow_extra_args": True,
        "ignore_unknown_options": True,
    },
)
def main(
    ctx: typer.Context,
    file: Optional[str] = typer.Option(
        None, "--file", "-f", help="C source file to compile; the .c extension is optional"
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Compiled executable; defaults to the source name"
    ),
    command: Optional[str] = typer.Option(
        None, "--command", "-c", help="Shell command whose output is piped into the program"
    ),
    compiler_flags: Optional[str] = typer.Option(
        None, "--set", "-s", help="Extra compiler flags as a single string"
    ),
    watch: int = typer.Option(
        0,
        "--watch",
        "-w",
        help="Check the source every N seconds and recompile+run on change (N > 0)",
    ),
    watch_pattern: Optional[str] = typer.Option(
        None,
        "--wpattern",
        "-wp",
        help="Directory or glob of sibling sources to recompile (-c, to .o) while watching",
    ),
    program_args: Optional[str] = typer.Option(
        None, "--argvs", "-a", help="Arguments forwarded to the compiled program"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show informational status lines"
    ),
    cc: str = typer.Option("gcc", "--cc", help="Compiler executable", envvar="CC"),
    clear: bool = typer.Option(
        True, "--clear/--no-clear", help="Clear the terminal before each cycle"
    ),
):
    """Compile a C source file, then run it; optionally on every change."""
    setup_logging(verbose)

    if ctx.args:
        typer.echo(ctx.get_help())
        raise typer.Exit(int(ExitCode.OK))

    try:
        cfg = resolve_config(
            file,
            output=output,
            compiler_flags=compiler_flags,
            pipe_command=command,
            program_args=program_args,
            watch_interval=watch,
            watch_pattern=watch_pattern,
            verbose=verbose,
        )
    except ArgumentError as e:
        if e.exit_code != ExitCode.OK:
            logger.error(str(e))
        typer.echo(ctx.get_help())
        raise typer.Exit(int(e.exit_code))

    logger.info(f"Source: {cfg.source_file} -> {cfg.output_path}")
    compiler = GccCompiler(cc)
    runner = SubprocessRunner()

    if not cfg.watching:
        if clear:
            click.clear()
        result = run_cycle(cfg, compiler=compiler, runner=runner)
        raise typer.Exit(int(result.exit_code))

    if watch_pattern:
        logger.info(f"Watch pattern: {cfg.watch_pattern}")
    if clear:
        click.clear()
    try:
        watch_loop(cfg, compiler=compiler, runner=runner, clear_screen=clear)
    except KeyboardInterrupt:
        logger.info("Stopping watcher...")


if __name__ == "__main__":
    app()
