from enum import Enum, IntEnum


class ExitCode(IntEnum):
    OK = 0
    NO_SOURCE = 1  # help is shown for a missing -f, which exits OK instead
    ARGS = 2
    COMPILE = 3
    RUNTIME = 4
    NO_FILE = 5


class CycleResult(str, Enum):
    """Outcome of one compile+run attempt."""

    COMPILED_AND_RAN = "compiled_and_ran"
    COMPILE_FAILED = "compile_failed"
    OUTPUT_MISSING = "output_missing"
    RUN_FAILED = "run_failed"

    @property
    def exit_code(self) -> ExitCode:
        return _RESULT_EXIT_CODES[self]


_RESULT_EXIT_CODES = {
    CycleResult.COMPILED_AND_RAN: ExitCode.OK,
    CycleResult.COMPILE_FAILED: ExitCode.COMPILE,
    CycleResult.OUTPUT_MISSING: ExitCode.RUNTIME,
    CycleResult.RUN_FAILED: ExitCode.RUNTIME,
}


class ComprunError(Exception):
    exit_code: ExitCode = ExitCode.ARGS


class ArgumentError(ComprunError):
    """Missing or invalid source file; usage text is shown alongside."""

    exit_code = ExitCode.ARGS


class NoSourceError(ArgumentError):
    exit_code = ExitCode.OK


class CycleError(ComprunError):
    result: CycleResult = CycleResult.RUN_FAILED

    @property
    def exit_code(self) -> ExitCode:  # type: ignore[override]
        return self.result.exit_code


class CompileError(CycleError):
    result = CycleResult.COMPILE_FAILED


class RuntimeOutputMissingError(CycleError):
    result = CycleResult.OUTPUT_MISSING


class RuntimeExecutionError(CycleError):
    result = CycleResult.RUN_FAILED

    def __init__(self, message: str, returncode: int) -> None:
        super().__init__(message)
        self.returncode = returncode
