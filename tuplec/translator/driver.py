"""File-level driver and the optional compile-and-run step."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import shlex
import subprocess
from typing import Optional

from ..constants import COMPILER_ENV_VAR, DEFAULT_COMPILER
from .diagnostics import TranslationFailed
from .dispatcher import TranslationResult, translate_source


def default_output_path(source_path) -> Path:
    """``foo.tc`` becomes ``foo.c``; ``foo.c`` becomes ``foo.tuple.c``."""

    source_path = Path(source_path)
    if source_path.suffix == ".c":
        return source_path.with_name(source_path.stem + ".tuple.c")
    return source_path.with_suffix(".c")


def translate_file(source_path, output_path=None, *, fail_fast=True, **options) -> TranslationResult:
    """Translate ``source_path`` and write the result.

    Nothing is written when the translation reports a diagnostic; a
    :class:`TranslationFailed` carrying every diagnostic is raised instead.
    """

    source_path = Path(source_path)
    output_path = Path(output_path) if output_path else default_output_path(source_path)
    src = source_path.read_text(encoding="utf-8")

    result = translate_source(src, fail_fast=fail_fast, **options)
    if not result.ok:
        raise TranslationFailed(result.diagnostics, filename=str(source_path), result=result)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.text, encoding="utf-8")
    return result


@dataclass(frozen=True)
class BuildOutcome:
    """Return codes and captured output of the compile and run steps."""

    executable: Path
    compile_returncode: int
    compile_output: str
    run_returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""

    @property
    def compiled(self) -> bool:
        return self.compile_returncode == 0

    @property
    def ok(self) -> bool:
        return self.compiled and self.run_returncode in (None, 0)

    @property
    def returncode(self) -> int:
        if not self.compiled:
            return self.compile_returncode
        return self.run_returncode or 0


def resolve_compiler(compiler=None):
    """Explicit argument, then ``$CC``, then ``cc``; split like a shell would."""

    command = compiler or os.environ.get(COMPILER_ENV_VAR) or DEFAULT_COMPILER
    return shlex.split(command)


def compile_and_run(c_path, *, compiler=None, cflags=(), executable=None, run=True, program_args=()):
    """Compile a translated C file and, if that succeeds, run the binary."""

    c_path = Path(c_path)
    if executable is None:
        suffix = ".exe" if os.name == "nt" else ""
        executable = c_path.with_suffix(suffix) if suffix else c_path.with_suffix("")
        if executable == c_path:
            executable = c_path.with_name(c_path.name + ".out")
    executable = Path(executable)

    command = resolve_compiler(compiler) + list(cflags) + [str(c_path), "-o", str(executable)]
    compiled = subprocess.run(command, capture_output=True, text=True)
    compile_output = (compiled.stdout or "") + (compiled.stderr or "")
    if compiled.returncode != 0 or not run:
        return BuildOutcome(executable, compiled.returncode, compile_output)

    ran = subprocess.run([str(executable.resolve()), *program_args], capture_output=True, text=True)
    return BuildOutcome(
        executable,
        compiled.returncode,
        compile_output,
        run_returncode=ran.returncode,
        stdout=ran.stdout or "",
        stderr=ran.stderr or "",
    )


__all__ = [
    "BuildOutcome",
    "compile_and_run",
    "default_output_path",
    "resolve_compiler",
    "translate_file",
]
