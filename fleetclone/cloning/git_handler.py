"""
Git transport for fleet cloning.

Runs `git clone` as a subprocess and follows its progress output to
report received bytes and objects. Git writes objects straight to
disk; this side only ever holds one chunk of progress text.
"""

import codecs
import logging
import os
import re
import shutil
import subprocess
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional

from fleetclone.cloning.outcome import ErrorKind
from fleetclone.core.exceptions import TransportError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[["TransferStats"], None]


@dataclass
class TransferStats:
    """Byte and object counts received so far."""

    received_bytes: int = 0
    received_objects: int = 0
    total_objects: int = 0


_UNITS = {
    "bytes": 1,
    "byte": 1,
    "KiB": 1024,
    "MiB": 1024 ** 2,
    "GiB": 1024 ** 3,
    "TiB": 1024 ** 4,
}

RECEIVING_PATTERN = re.compile(
    r"Receiving objects:\s+\d+%\s+\((\d+)/(\d+)\)"
    r"(?:,\s+([\d.]+)\s+(bytes?|KiB|MiB|GiB|TiB))?"
)

# Ordered: the first matching group wins. Git ends every SSH failure with
# "Could not read from remote repository", so that line classifies nothing.
_ERROR_PATTERNS = [
    (ErrorKind.PATH_COLLISION, re.compile(
        r"already exists and is not an empty directory", re.I)),
    (ErrorKind.LOCAL_FS_ERROR, re.compile(
        r"no space left on device|read-only file system|disk quota exceeded"
        r"|could not create work tree dir|unable to create|unable to write|cannot mkdir", re.I)),
    (ErrorKind.AUTH_REJECTED, re.compile(
        r"authentication failed|could not read username|could not read password"
        r"|permission denied \(publickey|host key verification failed"
        r"|http basic: access denied|returned error: 40[13]|terminal prompts disabled", re.I)),
    (ErrorKind.NETWORK_UNREACHABLE, re.compile(
        r"could not resolve host|connection refused"
        r"|connection timed out|network is unreachable|no route to host|failed to connect"
        r"|operation timed out|connection reset|\bssl\b|\btls\b|early eof"
        r"|the remote end hung up", re.I)),
    (ErrorKind.NOT_FOUND, re.compile(
        r"repository.* not found|project you were looking for could not be found"
        r"|does not appear to be a git repository|returned error: 404", re.I)),
    (ErrorKind.LOCAL_FS_ERROR, re.compile(r"permission denied", re.I)),
]


def classify_git_error(stderr: str) -> ErrorKind:
    """
    Map git's stderr output to an error classification.

    Args:
        stderr: Text written by git before it exited.

    Returns:
        The matching ErrorKind, or ErrorKind.UNKNOWN.
    """
    for kind, pattern in _ERROR_PATTERNS:
        if pattern.search(stderr):
            return kind
    return ErrorKind.UNKNOWN


def parse_progress_line(line: str, stats: TransferStats) -> bool:
    """Update stats from one progress line. Returns True if the line matched."""
    match = RECEIVING_PATTERN.search(line)
    if not match:
        return False

    stats.received_objects = int(match.group(1))
    stats.total_objects = int(match.group(2))
    if match.group(3):
        unit = match.group(4)
        stats.received_bytes = int(float(match.group(3)) * _UNITS.get(unit, 1))
    return True


def iter_progress_lines(
    stream: BinaryIO, chunk_size: int = 4096, max_line: int = 64 * 1024
) -> Iterator[str]:
    """
    Split a progress stream on carriage returns and newlines.

    Reads at most chunk_size bytes at a time. A partial line longer than
    max_line characters is truncated so that memory stays bounded.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    read = getattr(stream, "read1", stream.read)

    while True:
        chunk = read(chunk_size)
        if not chunk:
            break
        pending += decoder.decode(chunk)
        parts = re.split(r"[\r\n]", pending)
        pending = parts.pop()[-max_line:]
        for part in parts:
            if part:
                yield part

    pending += decoder.decode(b"", final=True)
    if pending:
        yield pending


def directory_size(path: Path) -> int:
    """Sum of file sizes under path, walked lazily."""
    total = 0
    for root, _dirs, files in os.walk(path):
        for filename in files:
            try:
                total += os.lstat(os.path.join(root, filename)).st_size
            except OSError:
                continue
    return total


class GitTransport:
    """
    Clones repositories with the git command line client.

    Credential prompts are disabled so that a rejected login fails
    instead of waiting on a terminal. SSH keys and HTTPS credential
    helpers come from the environment.
    """

    def __init__(self, git_executable: str = "git", chunk_size: int = 4096):
        self.git_executable = git_executable
        self.chunk_size = chunk_size
        self._available: Optional[bool] = None

    def check_available(self) -> bool:
        """Check if git is available on the system. Looked up once per transport."""
        if self._available is None:
            self._available = shutil.which(self.git_executable) is not None
        return self._available

    def _environment(self) -> dict:
        env = dict(os.environ)
        env["GIT_TERMINAL_PROMPT"] = "0"
        env["LC_ALL"] = "C"
        env.setdefault("GIT_SSH_COMMAND", "ssh -o BatchMode=yes")
        return env

    def clone(
        self,
        url: str,
        destination: Path,
        progress: Optional[ProgressCallback] = None,
    ) -> TransferStats:
        """
        Clone url into destination.

        Args:
            url: Clone URL (HTTPS or SSH).
            destination: Target directory; must not exist or be empty.
            progress: Called with updated stats as objects arrive.

        Returns:
            Final transfer statistics.

        Raises:
            TransportError: If git is missing or the clone fails.
        """
        if not self.check_available():
            raise TransportError(
                f"{self.git_executable} is not available on this system",
                kind=ErrorKind.TRANSPORT_UNAVAILABLE,
            )

        cmd = [self.git_executable, "clone", "--progress", url, str(destination)]
        logger.debug(f"Clone command: {' '.join(cmd)}")

        stats = TransferStats()
        tail = deque(maxlen=20)

        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                env=self._environment(),
            )
        except OSError as e:
            raise TransportError(
                f"Failed to start git: {e}",
                kind=ErrorKind.TRANSPORT_UNAVAILABLE,
            ) from e

        with proc:
            for line in iter_progress_lines(proc.stderr, self.chunk_size):
                if parse_progress_line(line, stats):
                    if progress is not None:
                        progress(stats)
                else:
                    tail.append(line)
            returncode = proc.wait()

        if returncode != 0:
            stderr = "\n".join(tail)
            kind = classify_git_error(stderr)
            last = tail[-1] if tail else f"git exited with status {returncode}"
            raise TransportError(last, kind=kind, stderr=stderr,
                                 details={"url": url, "returncode": returncode})

        if stats.received_bytes == 0:
            stats.received_bytes = directory_size(Path(destination) / ".git")

        return stats
