"""Local filesystem file store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from scriptorium.core.exceptions import UnderlyingStoreError
from scriptorium.core.ports import FileStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FileSystemStore(FileStore):
    """Writes files beneath a root directory.

    Commit messages are logged, since a plain directory has no history.
    """

    name = "filesystem"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        root = self.root.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root):
            msg = f"path escapes store root: {path}"
            raise UnderlyingStoreError(self.name, msg, status=400)
        return target

    async def _run(self, path: str, func: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(func)
        except FileNotFoundError as exc:
            raise UnderlyingStoreError(self.name, f"{path} not found", status=404) from exc
        except FileExistsError as exc:
            raise UnderlyingStoreError(self.name, f"{path} already exists", status=409) from exc
        except OSError as exc:
            raise UnderlyingStoreError(self.name, str(exc), status=500) from exc

    @staticmethod
    def _write(target: Path, content: str | bytes, *, exclusive: bool) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        mode = "x" if exclusive else "w"
        if isinstance(content, bytes):
            with target.open(f"{mode}b") as f:
                f.write(content)
        else:
            with target.open(mode, encoding="utf-8") as f:
                f.write(content)

    async def create_file(self, path: str, content: str | bytes, *, message: str) -> bool:
        target = self._resolve(path)
        await self._run(path, lambda: self._write(target, content, exclusive=True))
        logger.info("%s: %s", message, path)
        return True

    async def read_file(self, path: str) -> str:
        target = self._resolve(path)
        return await self._run(path, lambda: target.read_text(encoding="utf-8"))

    async def update_file(
        self,
        path: str,
        content: str | bytes,
        *,
        message: str,
        new_path: str | None = None,
    ) -> bool:
        source = self._resolve(path)
        target = self._resolve(new_path) if new_path else source

        def update() -> None:
            self._write(target, content, exclusive=False)
            if target != source:
                source.unlink(missing_ok=True)

        await self._run(path, update)
        logger.info("%s: %s", message, new_path or path)
        return True

    async def delete_file(self, path: str, *, message: str) -> bool:
        target = self._resolve(path)
        await self._run(path, target.unlink)
        logger.info("%s: %s", message, path)
        return True
