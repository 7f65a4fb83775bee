"""Starts the local web server for a test run and waits until it answers."""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

import requests

from ..core.config import HarnessConfig

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.5
PROBE_TIMEOUT = 2


class DevServerError(RuntimeError):
    """Raised when the development server does not come up in time."""


def is_serving(url: str) -> bool:
    """``True`` once ``url`` returns any HTTP response."""

    try:
        requests.get(url, timeout=PROBE_TIMEOUT)
    except requests.RequestException:
        return False
    return True


@dataclass
class DevServer:
    command: Sequence[str]
    url: str
    cwd: Optional[str] = None
    timeout: float = 120.0
    reuse_existing: bool = True
    process: Optional[subprocess.Popen] = field(default=None, init=False)

    @classmethod
    def from_config(cls, config: HarnessConfig) -> "DevServer":
        return cls(
            command=config.server_command,
            url=config.base_url,
            cwd=config.server_cwd,
            timeout=config.server_timeout,
            reuse_existing=config.reuse_existing_server,
        )

    @property
    def owned(self) -> bool:
        return self.process is not None

    def start(self) -> None:
        if self.reuse_existing and is_serving(self.url):
            logger.info("Reusing server already listening on %s", self.url)
            return

        logger.info("Starting dev server: %s", " ".join(self.command))
        try:
            self.process = subprocess.Popen(
                list(self.command),
                cwd=self.cwd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.STDOUT,
            )
        except FileNotFoundError as exc:
            raise DevServerError(f"Server command not found: {self.command[0]}") from exc

        self._wait_until_ready()

    def _wait_until_ready(self) -> None:
        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            if self.process is not None and self.process.poll() is not None:
                code = self.process.returncode
                self.process = None
                raise DevServerError(f"Server exited early with status {code}")
            if is_serving(self.url):
                logger.info("Server ready on %s", self.url)
                return
            time.sleep(POLL_INTERVAL)

        self.stop()
        raise DevServerError(f"Server did not answer on {self.url} within {self.timeout:g}s")

    def stop(self) -> None:
        if self.process is None:
            return
        process, self.process = self.process, None
        process.terminate()
        try:
            process.wait(timeout=10)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    def __enter__(self) -> "DevServer":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
