from __future__ import annotations

import base64
import io
import zipfile
from typing import Dict, Iterator, Set

IMAGE_DIR = "images"


def image_path(filename: str) -> str:
    return f"{IMAGE_DIR}/{filename}"


class ImageArchive:
    """
    In-memory image store keyed by ``images/<filename>``.

    A path is reserved before its fetch starts and stored at most once, so
    concurrent fetches never race on the same key.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, bytes] = {}
        self._reserved: Set[str] = set()

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def reserve(self, path: str) -> bool:
        """Claim ``path`` for a fetch. False if it is stored or already claimed."""
        if path in self._entries or path in self._reserved:
            return False
        self._reserved.add(path)
        return True

    def release(self, path: str) -> None:
        self._reserved.discard(path)

    def store(self, path: str, data: bytes) -> None:
        if path in self._entries:
            raise KeyError(f"{path} is already archived")
        self._entries[path] = data
        self._reserved.discard(path)

    def get(self, path: str) -> bytes:
        return self._entries[path]

    def to_zip_bytes(self) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for path, data in self._entries.items():
                zf.writestr(path, data)
        return buf.getvalue()

    def to_base64(self) -> str:
        return base64.b64encode(self.to_zip_bytes()).decode("ascii")
