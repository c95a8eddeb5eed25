# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""Logging interface for pyairwatch.

Library modules report progress through a small Logger protocol instead of
printing directly, so the same upload code can run silently inside another
tool or chattily under the awr CLI. A logger can be installed globally or
passed to each call.

Output levels:
- Step: Always printed (numbered phases of a CLI command)
- Warning: Always printed, to stderr (insecure settings, ignored input)
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)

Example:
    Configure global logger:
        ```python
        from pyairwatch.logging import get_logger, set_global_logger

        set_global_logger(get_logger(verbose=True))
        ```

    Use in library code:
        ```python
        from pyairwatch.logging import get_global_logger

        logger = get_global_logger()
        logger.step(1, 2, "Uploading chunks...")
        logger.verbose("UPLOAD", "Chunk 3/12 acknowledged")
        logger.debug("HTTP", "POST mam/apps/internal/uploadchunk")
        logger.warning("HTTP", "TLS certificate verification is disabled")
        ```

Note:
    The default global logger is silent, so library functions print nothing
    unless configured. The CLI installs a DefaultLogger for each command.
"""

from __future__ import annotations

import sys
from typing import Protocol, TextIO


class Logger(Protocol):
    """Protocol for logger implementations."""

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator.

        Args:
            step: Current step number (1-based).
            total: Total number of steps.
            message: Step description.
        """
        ...

    def warning(self, prefix: str, message: str) -> None:
        """Report something the user should know about regardless of verbosity."""
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message.

        Args:
            prefix: Message prefix (e.g., "UPLOAD", "DEVICE").
            message: Log message.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message.

        Args:
            prefix: Message prefix (e.g., "HTTP", "CONFIG").
            message: Log message.
        """
        ...


class DefaultLogger:
    """Logger that prints to stdout, with warnings going to stderr.

    Args:
        verbose: Print verbose messages.
        debug: Print debug messages (implies verbose).
        stream: Destination for step/verbose/debug output (default stdout).
        err_stream: Destination for warnings (default stderr).
    """

    def __init__(
        self,
        verbose: bool = False,
        debug: bool = False,
        *,
        stream: TextIO | None = None,
        err_stream: TextIO | None = None,
    ) -> None:
        self._verbose = verbose or debug
        self._debug = debug
        self._stream = stream
        self._err_stream = err_stream

    def _write(self, line: str, err: bool = False) -> None:
        # Resolve sys.stdout/stderr late so pytest's capsys sees the output.
        target = self._err_stream if err else self._stream
        if target is None:
            target = sys.stderr if err else sys.stdout
        print(line, file=target)

    def step(self, step: int, total: int, message: str) -> None:
        self._write(f"[{step}/{total}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        self._write(f"[{prefix}] WARNING: {message}", err=True)

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            self._write(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            self._write(f"[{prefix}] {message}")


class SilentLogger:
    """Logger that suppresses all output."""

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass


class RecordingLogger:
    """Logger that keeps every message as a (level, prefix, message) tuple.

    Useful for asserting on library output without capturing stdout.
    """

    def __init__(self) -> None:
        self.records: list[tuple[str, str, str]] = []

    def step(self, step: int, total: int, message: str) -> None:
        self.records.append(("step", f"{step}/{total}", message))

    def warning(self, prefix: str, message: str) -> None:
        self.records.append(("warning", prefix, message))

    def verbose(self, prefix: str, message: str) -> None:
        self.records.append(("verbose", prefix, message))

    def debug(self, prefix: str, message: str) -> None:
        self.records.append(("debug", prefix, message))

    def messages(self, level: str | None = None) -> list[str]:
        return [m for lvl, _, m in self.records if level is None or lvl == level]


# Global logger instance (defaults to silent)
_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Get a stdout logger with the given verbosity."""
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Return the logger library functions use when none is passed."""
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Install the logger library functions fall back to.

    Args:
        logger: Logger instance to use as the global logger.

    Note:
        Prefer passing a logger to AirWatchClient for isolation; the global
        logger is shared by every client in the process.
    """
    global _global_logger
    _global_logger = logger
