"""Run ``hugo server -D`` next to the editor and relay its output to a logger."""

import logging
import subprocess
import threading
from typing import IO, List, Optional, Sequence

from hugs.errors import ExternalToolError

DEFAULT_COMMAND = ('hugo', 'server', '-D')
PREVIEW_URL = 'http://localhost:1313/'


class PreviewServer:
    """Supervise one preview server process.

    Output is relayed by two reader threads (stdout at INFO, stderr at ERROR)
    and a third thread logs the exit. None of them touch request state.
    """

    def __init__(
        self,
        site_root: str,
        command: Sequence[str] = DEFAULT_COMMAND,
        logger: Optional[logging.Logger] = None,
    ):
        self.site_root = site_root
        self.command = list(command)
        self.logger = logger or logging.getLogger(__name__)
        self.process: Optional[subprocess.Popen] = None
        self._threads: List[threading.Thread] = []

    def start(self) -> subprocess.Popen:
        self.logger.info('Starting Hugo server in %s', self.site_root)
        try:
            self.process = subprocess.Popen(
                self.command,
                cwd=self.site_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,
            )
        except OSError as exc:
            raise ExternalToolError(f'failed to start {self.command[0]}: {exc}') from exc

        self._threads = [
            threading.Thread(
                target=self._relay, args=(self.process.stdout, logging.INFO),
                name='hugo-stdout', daemon=True,
            ),
            threading.Thread(
                target=self._relay, args=(self.process.stderr, logging.ERROR),
                name='hugo-stderr', daemon=True,
            ),
            threading.Thread(target=self._report_exit, name='hugo-exit', daemon=True),
        ]
        for thread in self._threads:
            thread.start()

        self.logger.info('Hugo server started at %s', PREVIEW_URL)
        return self.process

    def _relay(self, stream: IO[str], level: int) -> None:
        with stream:
            for line in stream:
                self.logger.log(level, '[hugo] %s', line.rstrip('\r\n'), extra={'source': 'hugo'})

    def _report_exit(self) -> None:
        code = self.process.wait()
        if code:
            self.logger.error('Hugo server exited with code %s', code)
        else:
            self.logger.info('Hugo server exited')

    def wait(self) -> Optional[int]:
        """Block until the process exits and its output is drained."""
        for thread in self._threads:
            thread.join()
        return self.process.returncode if self.process else None

    def stop(self) -> None:
        if self.process is not None and self.process.poll() is None:
            self.logger.info('Stopping Hugo server')
            self.process.terminate()
