"""Bucket file bytes on the local filesystem: <root>/<bucket_id>/<path>."""

from pathlib import Path
from typing import Optional

from fastapi import status

from schoolerp.core.config import settings
from schoolerp.core.exceptions import ServiceError


class LocalFileStore:
    def __init__(self, root: str) -> None:
        self.root = Path(root).resolve()

    def _resolve(self, bucket_id: str, path: str) -> Path:
        bucket_dir = (self.root / bucket_id).resolve()
        target = (bucket_dir / path.lstrip("/")).resolve()
        # Both the bucket id and the path must stay inside their parent directory
        if bucket_dir.parent != self.root or target == bucket_dir or not target.is_relative_to(bucket_dir):
            raise ServiceError("Invalid object path", status.HTTP_400_BAD_REQUEST)
        return target

    def check_path(self, bucket_id: str, path: str) -> None:
        self._resolve(bucket_id, path)

    def write(self, bucket_id: str, path: str, content: bytes) -> None:
        target = self._resolve(bucket_id, path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def read(self, bucket_id: str, path: str) -> Optional[bytes]:
        target = self._resolve(bucket_id, path)
        if not target.is_file():
            return None
        return target.read_bytes()

    def delete(self, bucket_id: str, path: str) -> None:
        target = self._resolve(bucket_id, path)
        target.unlink(missing_ok=True)


def get_file_store() -> LocalFileStore:
    return LocalFileStore(settings.storage_root)
