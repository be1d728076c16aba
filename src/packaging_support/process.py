from __future__ import annotations

import logging
import subprocess
import sys
import threading
from collections.abc import Sequence
from typing import IO

LOG = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"


def log_arguments(tool: str, arguments: Sequence[str]) -> None:
    for index, argument in enumerate(arguments):
        LOG.info("%s[%d]: %s", tool, index, argument)


def _drain(stream: IO[str], tool: str, channel: str, level: int) -> None:
    with stream:
        for line in stream:
            LOG.log(level, "%s: %s: %s", tool, channel, line.rstrip("\r\n"))


def execute_program_and_log(arguments: Sequence[str], *, tool: str) -> None:
    """Run an external tool, logging its stdout and stderr line by line.

    Both streams are drained on their own threads so that neither pipe can
    fill up and stall the child. Raises ``CalledProcessError`` on a non-zero
    exit status.
    """

    command = [str(a) for a in arguments]
    process = subprocess.Popen(
        command,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
    )

    assert process.stdout is not None and process.stderr is not None
    drains = [
        threading.Thread(
            target=_drain,
            args=(process.stdout, tool, "stdout", logging.INFO),
            name=f"{tool}-stdout",
            daemon=True,
        ),
        threading.Thread(
            target=_drain,
            args=(process.stderr, tool, "stderr", logging.ERROR),
            name=f"{tool}-stderr",
            daemon=True,
        ),
    ]
    for thread in drains:
        thread.start()

    returncode = process.wait()
    for thread in drains:
        thread.join()

    if returncode != 0:
        LOG.error("%s failed with exit status %d", tool, returncode)
        raise subprocess.CalledProcessError(returncode, command)
