"""
Disk storage for submission attachments.

Uploads are written in two phases. ``stage`` streams each upload into
``<upload_dir>/.staging`` while enforcing the per-file size cap. Once the
owning submission row is committed, ``commit`` moves the file to
``<upload_dir>/<filename>``. If the DB write fails, ``discard`` removes the
staged copies, so a failed request leaves nothing behind.
"""
import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from fastapi import UploadFile, status

from smartclass.core.errors import UploadRejectedError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
_SAFE_EXTENSION = re.compile(r"^\.[A-Za-z0-9]{1,16}$")


@dataclass
class StagedFile:
    filename: str
    original_name: str
    staged_path: Path
    final_path: Path
    size: int


class AttachmentStorage:
    def __init__(self, upload_dir: str | os.PathLike, max_bytes: int, field_name: str = "attachments"):
        self.root = Path(upload_dir)
        self.staging_dir = self.root / ".staging"
        self.max_bytes = max_bytes
        self.field_name = field_name

    def ensure_dirs(self) -> None:
        self.staging_dir.mkdir(parents=True, exist_ok=True)

    def generate_filename(self, original_name: str | None) -> str:
        """<field>-<epoch ms>-<random>.<ext>, keeping the client's extension if sane."""
        ext = Path(original_name or "").suffix
        if not _SAFE_EXTENSION.match(ext):
            ext = ""
        stamp = int(time.time() * 1000)
        return f"{self.field_name}-{stamp}-{secrets.randbelow(10**9)}{ext}"

    def resolve(self, filename: str) -> Path:
        # generated names never contain separators, anything else is not ours
        if not filename or Path(filename).name != filename or filename.startswith("."):
            raise ValueError(f"invalid attachment filename: {filename!r}")
        return self.root / filename

    def stage(self, upload: UploadFile) -> StagedFile:
        self.ensure_dirs()
        original_name = upload.filename or "attachment"
        filename = self.generate_filename(original_name)
        staged_path = self.staging_dir / filename

        size = 0
        try:
            with open(staged_path, "wb") as out:
                while True:
                    chunk = upload.file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise UploadRejectedError(
                            f"File {original_name} exceeds the {self.max_bytes} byte limit",
                            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        )
                    out.write(chunk)
        except BaseException:
            staged_path.unlink(missing_ok=True)
            raise

        return StagedFile(
            filename=filename,
            original_name=original_name,
            staged_path=staged_path,
            final_path=self.root / filename,
            size=size,
        )

    def stage_all(self, uploads: Iterable[UploadFile]) -> list[StagedFile]:
        staged: list[StagedFile] = []
        try:
            for upload in uploads:
                staged.append(self.stage(upload))
        except BaseException:
            self.discard(staged)
            raise
        return staged

    def commit(self, staged: Iterable[StagedFile]) -> None:
        """Move staged files into place; on failure, files already moved are removed again."""
        moved: list[StagedFile] = []
        try:
            for f in staged:
                os.replace(f.staged_path, f.final_path)
                moved.append(f)
        except OSError:
            for f in moved:
                f.final_path.unlink(missing_ok=True)
            raise

    def discard(self, staged: Iterable[StagedFile]) -> None:
        for f in staged:
            f.staged_path.unlink(missing_ok=True)
            logger.info("Discarded staged attachment %s", f.filename)

    def remove(self, filenames: Iterable[str]) -> None:
        """Delete committed files; a failure is logged and the rest still go."""
        for filename in filenames:
            try:
                self.resolve(filename).unlink(missing_ok=True)
            except (OSError, ValueError):
                logger.warning("Could not remove attachment %s", filename, exc_info=True)
