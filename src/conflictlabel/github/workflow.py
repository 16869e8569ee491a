"""
GitHub Actions workflow commands.

The runner reads stdout: plain lines are log output, `::warning::` style lines
become annotations, and step outputs are appended to the file named by
GITHUB_OUTPUT.
"""
from __future__ import annotations

import os
import sys
import uuid
from typing import Mapping, Optional

LOG_PREFIX = "[ConflictLabel]"


def _escape_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def info(message: str) -> None:
    print(f"{LOG_PREFIX} {message}", flush=True)


def debug(message: str) -> None:
    # Only rendered when ACTIONS_STEP_DEBUG is enabled on the repo
    print(f"::debug::{_escape_data(message)}", flush=True)


def warning(message: str) -> None:
    print(f"::warning::{_escape_data(message)}", flush=True)


def error(message: str) -> None:
    print(f"::error::{_escape_data(message)}", flush=True)


def set_output(name: str, value: str, environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Write a step output using the multiline delimiter syntax.

    Outside of Actions (no GITHUB_OUTPUT) the value is just logged.
    """
    env = os.environ if environ is None else environ
    output_path = env.get("GITHUB_OUTPUT", "")
    if not output_path:
        info(f"output {name}={value}")
        return

    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in name or delimiter in value:
        raise ValueError(f"Unexpected input: output value contains the delimiter {delimiter}")

    with open(output_path, "a", encoding="utf-8") as f:
        f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


def set_failed(message: str) -> None:
    """Log the error annotation and terminate the step with a failure exit code."""
    error(message)
    sys.exit(1)
