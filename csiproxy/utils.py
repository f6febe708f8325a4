"""Helpers for running host commands."""

from __future__ import annotations

import logging
import os
import subprocess

MAX_PATH_LENGTH_WINDOWS = 260

logger = logging.getLogger(__name__)


def run_powershell_cmd(command: str, *args: str) -> bytes:
    """Run ``command`` in PowerShell and return its combined output.

    Each extra argument is an environment entry of the form ``NAME=VALUE``
    added on top of the current environment. A non-zero exit raises
    :class:`subprocess.CalledProcessError` carrying the output.
    """
    env = dict(os.environ)
    for entry in args:
        name, sep, value = entry.partition("=")
        if not sep or not name:
            raise ValueError(f"invalid environment entry: {entry!r}")
        env[name] = value

    argv = ["powershell", "-Mta", "-NoProfile", "-Command", command]
    logger.debug("Executing command: %r", argv)
    result = subprocess.run(
        argv,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        check=False,
    )
    if result.returncode != 0:
        raise subprocess.CalledProcessError(result.returncode, argv, output=result.stdout)
    return result.stdout