"""Host-specific copy command forms."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence

POSIX = "posix"
WINDOWS = "windows"
PLATFORMS = (POSIX, WINDOWS)


def detect_platform() -> str:
    """Return the platform name for the running host."""
    return WINDOWS if os.name == "nt" else POSIX


class CopyCommands(ABC):
    """Builds argv lists for the copies the pipeline performs."""

    name: str

    @abstractmethod
    def copy_tree(self, source: Path, destination: Path) -> List[str]:
        """Command copying the contents of ``source`` into ``destination``, overwriting."""

    @abstractmethod
    def copy_files(self, files: Sequence[Path], destination: Path) -> List[List[str]]:
        """Commands copying ``files`` into the ``destination`` folder.

        Several commands are independent of each other and may run concurrently.
        """


class PosixCopyCommands(CopyCommands):
    name = POSIX

    def copy_tree(self, source: Path, destination: Path) -> List[str]:
        # "<src>/." copies the directory contents, dotfiles included, without shell globbing.
        return ["cp", "-R", f"{source}/.", str(destination)]

    def copy_files(self, files: Sequence[Path], destination: Path) -> List[List[str]]:
        return [["cp", *[str(path) for path in files], str(destination)]]


class WindowsCopyCommands(CopyCommands):
    name = WINDOWS

    # "cmd /c" makes sure the Windows command processor runs xcopy rather than another shell.
    _PREFIX = ("cmd", "/c", "xcopy")

    def copy_tree(self, source: Path, destination: Path) -> List[str]:
        return [*self._PREFIX, "/e", "/h", "/q", "/y", str(source), _as_folder(destination)]

    def copy_files(self, files: Sequence[Path], destination: Path) -> List[List[str]]:
        return [
            [*self._PREFIX, "/q", "/y", str(path), _as_folder(destination)]
            for path in files
        ]


def copy_commands_for(platform: str) -> CopyCommands:
    if platform == WINDOWS:
        return WindowsCopyCommands()
    if platform == POSIX:
        return PosixCopyCommands()
    raise ValueError(f"Unsupported platform '{platform}'; expected one of {', '.join(PLATFORMS)}")


def _as_folder(path: Path) -> str:
    # A trailing separator stops xcopy from asking whether the target is a file.
    text = str(path)
    return text if text.endswith("\\") else text + "\\"


__all__ = [
    "CopyCommands",
    "PLATFORMS",
    "POSIX",
    "PosixCopyCommands",
    "WINDOWS",
    "WindowsCopyCommands",
    "copy_commands_for",
    "detect_platform",
]
