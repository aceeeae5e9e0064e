"""Upload receiver buffering the single file of a multipart request in memory or on disk."""

import mimetypes
import time
from collections.abc import Mapping
from pathlib import Path

from upload_gateway.core.errors import PayloadTooLargeError, TooManyFilesError, UploadRejectedError
from upload_gateway.core.logger import LogIcon, logger
from upload_gateway.core.settings import Settings
from upload_gateway.models.core import BufferedFile, StorageMode

DEFAULT_MIME_TYPE = "application/octet-stream"


def timestamp_ms() -> int:
    return time.time_ns() // 1_000_000


def safe_basename(filename: str) -> str:
    """Strip any client-supplied directory components from a filename."""
    name = Path(filename.replace("\\", "/")).name
    if name in ("", ".", ".."):
        return "upload"
    return name


def guess_mime_type(filename: str) -> str:
    """MIME type from the file extension; Robyn keeps no part headers."""
    mime_type, _ = mimetypes.guess_type(safe_basename(filename))
    return mime_type or DEFAULT_MIME_TYPE


class UploadReceiver:
    """Buffers the file Robyn parsed out of a multipart body per the chosen mode.

    Robyn hands handlers the file parts as ``request.files``, a mapping of
    client filename to content. Memory mode keeps the bytes in a per-request
    buffer and never touches disk. Disk mode writes them to
    ``<uploads_dir>/<epoch-ms>-<name>``. Limit violations raise an
    ``UploadRejectedError`` naming the limit before anything is written.
    """

    def __init__(
        self,
        uploads_dir: Path,
        max_file_size: int = 50 * 1024 * 1024,
        max_files: int = 1,
    ) -> None:
        self.uploads_dir = uploads_dir
        self.max_file_size = max_file_size
        self.max_files = max_files

    @classmethod
    def from_settings(cls, st: Settings, uploads_dir: Path | None = None) -> "UploadReceiver":
        return cls(
            uploads_dir=uploads_dir or st.UPLOADS_PATH,
            max_file_size=st.MAX_FILE_SIZE,
            max_files=st.MAX_FILES,
        )

    def receive(self, files: Mapping[str, bytes], mode: StorageMode) -> BufferedFile | None:
        """Buffer the uploaded file, or return None when the request carries none."""
        if not files:
            return None

        try:
            filename, content = self._single_file(files)
        except UploadRejectedError as ex:
            logger.warning("Upload rejected", icon=LogIcon.FORBIDDEN, reason=ex.message, limit=ex.limit)
            raise

        if mode is StorageMode.MEMORY:
            buffered = BufferedFile(
                original_name=filename,
                mime_type=guess_mime_type(filename),
                size=len(content),
                storage_mode=mode,
                content=content,
            )
        else:
            buffered = BufferedFile(
                original_name=filename,
                mime_type=guess_mime_type(filename),
                size=len(content),
                storage_mode=mode,
                path=self._write(filename, content),
            )

        logger.info(
            "File buffered",
            icon=LogIcon.DISK if buffered.on_disk else LogIcon.MEMORY,
            filename=buffered.original_name,
            size=buffered.size,
            storage=buffered.storage_mode,
        )
        return buffered

    def _single_file(self, files: Mapping[str, bytes]) -> tuple[str, bytes]:
        if len(files) > self.max_files:
            raise TooManyFilesError(f"Too many files (limit: {self.max_files})")

        filename, content = next(iter(files.items()))
        if len(content) > self.max_file_size:
            raise PayloadTooLargeError(f"File too large (limit: {self.max_file_size} bytes)")
        return filename, content

    def _write(self, filename: str, content: bytes) -> Path:
        path = self.uploads_dir / f"{timestamp_ms()}-{safe_basename(filename)}"
        try:
            path.write_bytes(content)
        except BaseException:
            path.unlink(missing_ok=True)
            raise
        return path
