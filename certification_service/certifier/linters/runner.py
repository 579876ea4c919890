"""Async execution of external rule engine CLIs."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from certifier.errors import EngineFailure

logger = logging.getLogger(__name__)


class CommandOutput(BaseModel):
    returncode: int
    stdout: str = ""
    stderr: str = ""


CommandRunner = Callable[[Sequence[str], Path], Awaitable[CommandOutput]]


async def run_command(argv: Sequence[str], cwd: Path) -> CommandOutput:
    """Run ``argv`` in ``cwd`` and capture its output.

    The child process is killed if the awaiting task is cancelled, so a
    per-entry timeout never leaves an engine running.

    Raises:
        EngineFailure: If the executable cannot be started.
    """
    logger.debug("Running %s in %s", " ".join(argv), cwd)
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd),
        )
    except FileNotFoundError as e:
        raise EngineFailure(f"Command not found: {argv[0]}") from e
    except OSError as e:
        raise EngineFailure(f"Failed to start {argv[0]}: {e}") from e

    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise

    return CommandOutput(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


def parse_json_output(output: CommandOutput, engine: str, empty: Any) -> Any:
    """Decode an engine's JSON report from stdout or, failing that, stderr.

    A clean exit with no output means no findings and returns ``empty``.

    Raises:
        EngineFailure: If neither stream holds a JSON report.
    """
    for stream in (output.stdout, output.stderr):
        text = stream.strip()
        if not text or text[0] not in "[{":
            continue
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            continue

    if output.returncode == 0 and not output.stdout.strip():
        return empty

    detail = (output.stderr.strip() or output.stdout.strip())[:500]
    raise EngineFailure(
        f"{engine} produced no JSON report (exit {output.returncode}): {detail}"
    )
