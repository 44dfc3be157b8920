"""Git subprocess runner — argv pinning, byte capture, exit status mapping."""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Optional, Sequence

from gitsmart.git.errors import (
    AbnormalTermination,
    CommandTimedOut,
    GitCommandFailed,
    OutputTooLarge,
    ProcessUnavailable,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_BYTES = 1 << 20
_CHUNK_SIZE = 1 << 16


@dataclass(frozen=True)
class GitResult:
    """Raw outcome of one git invocation."""

    args: tuple[str, ...]
    stdout: bytes
    stderr: bytes
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def require_success(self) -> bytes:
        """Return stdout, or raise if git did not exit normally with status 0."""
        if self.exit_code < 0:
            raise AbnormalTermination(
                f"git {' '.join(self.args)} was terminated by signal {-self.exit_code}"
            )
        if self.exit_code != 0:
            raise GitCommandFailed(self.args, self.exit_code, self.stderr)
        return self.stdout


class GitRunner:
    """Runs git inside one repository.

    Every call is synchronous and owns its output buffers. Test doubles
    subclass this and override :meth:`run`; the checking helpers are all
    built on top of it.
    """

    def __init__(
        self,
        repo: Path,
        executable: str = "git",
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    ) -> None:
        self.repo = Path(repo)
        self.executable = executable
        self.max_output_bytes = max_output_bytes

    def run(
        self,
        args: Sequence[str],
        timeout: Optional[float] = None,
        capture: bool = True,
    ) -> GitResult:
        """Run ``git -C <repo> <args>`` without checking the exit status.

        Captured streams are read in chunks and never held past
        ``max_output_bytes``; once either stream crosses the limit git is
        killed and :class:`OutputTooLarge` is raised. With ``capture=False``
        git inherits the terminal (needed when it opens an editor) and the
        result carries empty output.
        """
        argv = [self.executable, "-C", str(self.repo), *args]
        logger.debug("running %s", " ".join(argv))
        try:
            if capture:
                proc = subprocess.Popen(
                    argv,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                )
            else:
                proc = subprocess.Popen(argv)
        except FileNotFoundError as exc:
            raise ProcessUnavailable(f"{self.executable} is not installed or not on PATH") from exc
        except PermissionError as exc:
            raise ProcessUnavailable(f"{self.executable} is not executable") from exc

        if capture:
            stdout, stderr, overflow = self._collect(proc, args, timeout)
            if overflow is not None:
                raise OutputTooLarge(
                    f"git {' '.join(args)} wrote more than {self.max_output_bytes} bytes "
                    f"to {overflow}"
                )
        else:
            self._wait(proc, args, timeout)
            stdout = stderr = b""

        logger.debug(
            "git %s -> exit %d (stdout=%d bytes, stderr=%d bytes)",
            args[0] if args else "",
            proc.returncode,
            len(stdout),
            len(stderr),
        )
        return GitResult(args=tuple(args), stdout=stdout, stderr=stderr, exit_code=proc.returncode)

    def _collect(
        self,
        proc: subprocess.Popen,
        args: Sequence[str],
        timeout: Optional[float],
    ) -> tuple[bytes, bytes, Optional[str]]:
        """Drain both pipes concurrently; return the output and the overflowing stream, if any."""
        buffers = {"stdout": bytearray(), "stderr": bytearray()}
        overflow: list[str] = []

        def drain(name: str, stream: IO[bytes]) -> None:
            buf = buffers[name]
            with stream:
                while True:
                    chunk = stream.read1(_CHUNK_SIZE)
                    if not chunk:
                        return
                    if len(buf) + len(chunk) > self.max_output_bytes:
                        overflow.append(name)
                        proc.kill()
                        return
                    buf += chunk

        readers = [
            threading.Thread(target=drain, args=("stdout", proc.stdout), daemon=True),
            threading.Thread(target=drain, args=("stderr", proc.stderr), daemon=True),
        ]
        for reader in readers:
            reader.start()
        self._wait(proc, args, timeout)
        for reader in readers:
            reader.join()
        return bytes(buffers["stdout"]), bytes(buffers["stderr"]), (overflow[0] if overflow else None)

    def _wait(self, proc: subprocess.Popen, args: Sequence[str], timeout: Optional[float]) -> None:
        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            proc.kill()
            proc.wait()
            raise CommandTimedOut(
                f"git command timed out after {timeout}s: git {' '.join(args)}"
            ) from exc

    def check(self, args: Sequence[str], timeout: Optional[float] = None) -> bytes:
        """Run git and return stdout. Raises on any non-zero exit."""
        return self.run(args, timeout=timeout).require_success()

    def check_quiet(self, args: Sequence[str], timeout: Optional[float] = None) -> None:
        """Run git, discard stdout, and raise on any non-zero exit."""
        self.check(args, timeout=timeout)

    def check_interactive(self, args: Sequence[str]) -> None:
        """Run git attached to the terminal and raise on any non-zero exit."""
        self.run(args, capture=False).require_success()

    def check_text(self, args: Sequence[str]) -> str:
        """Run git and return stdout decoded, without the trailing newline."""
        return self.check(args).decode("utf-8", errors="replace").rstrip("\r\n")
