"""Document store over UTF-8 files on the local filesystem"""

import asyncio
from pathlib import Path

from memocards.crud.repo import DocumentStore


class FileDocumentStore(DocumentStore):
    """Reads and writes paths relative to root; blocking I/O runs in a worker thread."""

    def __init__(self, root: Path | str = '.'):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / path

    async def read(self, path: str) -> str:
        return await asyncio.to_thread(self._resolve(path).read_text, encoding='utf-8')

    async def write(self, path: str, text: str) -> None:
        await asyncio.to_thread(self._resolve(path).write_text, text, encoding='utf-8')
