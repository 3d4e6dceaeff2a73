"""Async file-system helpers for reading content definition files."""
from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from bmad_common.errors import FileReadError
from bmad_common.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

logger = get_logger("kb.files")


async def path_exists(path: Path) -> bool:
    return await asyncio.to_thread(path.exists)


async def read_text(path: Path) -> str:
    """Read a UTF-8 file without blocking the event loop.

    Raises:
        FileReadError: If the file is missing or unreadable.
    """
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Failed to read file %s: %s", path, exc)
        msg = f"Failed to read file: {path}"
        raise FileReadError(msg, str(path)) from exc


async def find_files(pattern: str, root: Path) -> list[Path]:
    """Return regular files under *root* matching a glob *pattern*, sorted.

    A missing *root* yields an empty list.
    """

    def _glob() -> list[Path]:
        if not root.is_dir():
            return []
        return sorted(p for p in root.glob(pattern) if p.is_file())

    return await asyncio.to_thread(_glob)


async def find_directories(root: Path) -> list[Path]:
    """Return the immediate sub-directories of *root*, sorted."""

    def _list() -> list[Path]:
        if not root.is_dir():
            return []
        return sorted(p for p in root.iterdir() if p.is_dir())

    return await asyncio.to_thread(_list)
