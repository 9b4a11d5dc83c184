# SPDX-License-Identifier: MIT
# SPDX-FileCopyrightText: The gitops-generator contributors
"""Filesystem capability used by the generators for all file I/O.

The generators never touch the process filesystem directly. They receive a
``Filesystem`` so that the same code can run against the real disk, an
in-memory tree in tests, or a read-only view.
"""

import errno
import os
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath


class Filesystem(ABC):
    """Minimal set of file operations needed to write manifests."""

    @abstractmethod
    def mkdir_all(self, path: str | Path, mode: int = 0o755) -> None:
        """Create a directory and any missing parents.

        Raises:
            OSError: If the directory cannot be created
        """

    @abstractmethod
    def exists(self, path: str | Path) -> bool:
        """Return True if a file or directory exists at path."""

    @abstractmethod
    def read_file(self, path: str | Path) -> bytes:
        """Read the full contents of a file.

        Raises:
            OSError: If the file cannot be read
        """

    @abstractmethod
    def write_file(self, path: str | Path, data: bytes, mode: int = 0o644) -> None:
        """Create or truncate a file and write data to it.

        Raises:
            OSError: If the file cannot be written
        """

    @abstractmethod
    def remove_file(self, path: str | Path) -> None:
        """Remove a file.

        Raises:
            OSError: If the file does not exist or cannot be removed
        """


class OsFilesystem(Filesystem):
    """Filesystem backed by the local disk."""

    def mkdir_all(self, path: str | Path, mode: int = 0o755) -> None:
        Path(path).mkdir(mode=mode, parents=True, exist_ok=True)

    def exists(self, path: str | Path) -> bool:
        return Path(path).exists()

    def read_file(self, path: str | Path) -> bytes:
        return Path(path).read_bytes()

    def write_file(self, path: str | Path, data: bytes, mode: int = 0o644) -> None:
        path = Path(path)
        path.write_bytes(data)
        path.chmod(mode)

    def remove_file(self, path: str | Path) -> None:
        Path(path).unlink()


class MemoryFilesystem(Filesystem):
    """Filesystem kept entirely in memory, keyed by normalized POSIX path."""

    def __init__(self) -> None:
        self._dirs: set[PurePosixPath] = {PurePosixPath("/")}
        self._files: dict[PurePosixPath, bytes] = {}
        self._modes: dict[PurePosixPath, int] = {}

    @staticmethod
    def _key(path: str | Path) -> PurePosixPath:
        return PurePosixPath(os.path.normpath(os.path.join("/", str(path))))

    def mkdir_all(self, path: str | Path, mode: int = 0o755) -> None:
        key = self._key(path)
        for parent in [key, *key.parents]:
            if parent in self._files:
                raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(parent))
        for parent in [key, *key.parents]:
            if parent not in self._dirs:
                self._dirs.add(parent)
                self._modes[parent] = mode

    def exists(self, path: str | Path) -> bool:
        key = self._key(path)
        return key in self._files or key in self._dirs

    def read_file(self, path: str | Path) -> bytes:
        key = self._key(path)
        if key in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", str(path))
        if key not in self._files:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", str(path))
        return self._files[key]

    def write_file(self, path: str | Path, data: bytes, mode: int = 0o644) -> None:
        key = self._key(path)
        if key in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", str(path))
        if key.parent not in self._dirs:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", str(path))
        self._files[key] = bytes(data)
        self._modes[key] = mode

    def remove_file(self, path: str | Path) -> None:
        key = self._key(path)
        if key in self._dirs:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", str(path))
        if key not in self._files:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", str(path))
        del self._files[key]
        del self._modes[key]

    def mode(self, path: str | Path) -> int:
        """Return the permission bits recorded for a file or directory."""
        return self._modes[self._key(path)]


class ReadOnlyFilesystem(Filesystem):
    """Read-only view over another filesystem.

    Reads are delegated; every operation that would modify the tree fails
    with ``PermissionError``.
    """

    def __init__(self, base: Filesystem | None = None) -> None:
        self._base = base if base is not None else OsFilesystem()

    def mkdir_all(self, path: str | Path, mode: int = 0o755) -> None:
        raise PermissionError(errno.EPERM, "Operation not permitted", str(path))

    def exists(self, path: str | Path) -> bool:
        return self._base.exists(path)

    def read_file(self, path: str | Path) -> bytes:
        return self._base.read_file(path)

    def write_file(self, path: str | Path, data: bytes, mode: int = 0o644) -> None:
        raise PermissionError(errno.EPERM, "Operation not permitted", str(path))

    def remove_file(self, path: str | Path) -> None:
        raise PermissionError(errno.EPERM, "Operation not permitted", str(path))
