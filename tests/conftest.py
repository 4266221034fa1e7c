import os

import pytest


class StubCompiler:
    """Records invocations; creates the output file unless told otherwise."""

    def __init__(self, ok=True, produce=True):
        self.ok = ok
        self.produce = produce
        self.calls = []

    def compile(self, source_file, output_path, flags):
        self.calls.append((source_file, output_path, flags))
        if self.ok and self.produce:
            with open(output_path, "w") as f:
                f.write("#!/bin/sh\n")
        return self.ok


class StubRunner:
    def __init__(self, returncode=0):
        self.returncode = returncode
        self.calls = []

    def run(self, argv, pipe_command=None):
        self.calls.append((list(argv), pipe_command))
        return self.returncode


@pytest.fixture
def compiler():
    return StubCompiler()


@pytest.fixture
def runner():
    return StubRunner()


@pytest.fixture
def demo(tmp_path, monkeypatch):
    """A demo.c in an empty working directory."""
    monkeypatch.chdir(tmp_path)
    src = tmp_path / "demo.c"
    src.write_text("int main(void) { return 0; }\n")
    os.utime(src, (1000, 1000))
    return src
