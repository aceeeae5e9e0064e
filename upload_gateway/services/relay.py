"""Relay of buffered uploads to the Gemini Files API."""

import asyncio
from pathlib import Path
from typing import Any, Protocol

from google import genai
from pydantic import BaseModel

from upload_gateway.core.errors import RelayError, UploadTimeoutError
from upload_gateway.core.logger import LogIcon, logger
from upload_gateway.core.settings import Settings
from upload_gateway.models.core import BufferedFile
from upload_gateway.services.receiver import safe_basename, timestamp_ms

TIMEOUT_MESSAGE = "Gemini API upload timeout"


class FilesAPI(Protocol):
    """The subset of ``genai.Client().aio.files`` the relay uses."""

    async def upload(self, *, file: str, config: dict[str, Any]) -> Any: ...


def to_metadata(uploaded: Any) -> dict[str, Any]:
    """Serialize provider metadata to a JSON-able dict without reshaping it."""
    match uploaded:
        case BaseModel():
            return uploaded.model_dump(mode="json", by_alias=True, exclude_none=True)
        case dict():
            return uploaded
        case _:
            return {"value": uploaded}


class GeminiRelayClient:
    """Uploads a disk-resident file and races the call against a timeout.

    A call that outlives the timeout is abandoned, not cancelled: it keeps
    running in the background and its eventual outcome is only logged.
    """

    def __init__(
        self,
        uploads_dir: Path,
        files: FilesAPI | None = None,
        api_key: str = "",
        timeout: float = 180.0,
    ) -> None:
        self._files = files
        self._api_key = api_key
        self.uploads_dir = uploads_dir
        self.timeout = timeout
        self._abandoned: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, st: Settings, uploads_dir: Path | None = None) -> "GeminiRelayClient":
        return cls(
            uploads_dir=uploads_dir or st.UPLOADS_PATH,
            api_key=st.GOOGLE_API_KEY.get_secret_value(),
            timeout=st.UPLOAD_TIMEOUT,
        )

    @property
    def files(self) -> FilesAPI:
        """Gemini files API, built on first use so a missing key fails the relay, not startup."""
        if self._files is None:
            self._files = genai.Client(api_key=self._api_key).aio.files
        return self._files

    @property
    def abandoned(self) -> int:
        """Number of timed-out calls that have not settled yet."""
        return len(self._abandoned)

    def stage(self, buffered: BufferedFile) -> Path:
        """Return a disk path for the upload, writing memory buffers to a temp file."""
        if buffered.path is not None:
            return buffered.path
        temp_path = self.uploads_dir / f"temp-{timestamp_ms()}-{safe_basename(buffered.original_name)}"
        try:
            temp_path.write_bytes(buffered.content or b"")
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise
        logger.info("Memory buffer materialized", icon=LogIcon.FILE, path=temp_path.name, size=buffered.size)
        return temp_path

    async def relay(self, file_path: Path, mime_type: str, display_name: str) -> dict[str, Any]:
        logger.info("Relaying file to Gemini", icon=LogIcon.NETWORK, display_name=display_name, mime_type=mime_type)
        try:
            files = self.files
        except ValueError as ex:
            raise RelayError(str(ex)) from ex

        task = asyncio.ensure_future(
            files.upload(file=str(file_path), config={"mime_type": mime_type, "display_name": display_name})
        )
        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout)
        except asyncio.CancelledError:
            self._abandon(task)
            raise

        if task not in done:
            self._abandon(task)
            logger.error("Gemini upload timed out", icon=LogIcon.TIMEOUT, timeout=self.timeout)
            raise UploadTimeoutError(TIMEOUT_MESSAGE)

        if task.cancelled():
            raise RelayError("Gemini upload cancelled")
        if (ex := task.exception()) is not None:
            logger.error("Gemini upload failed", icon=LogIcon.ERROR, error=str(ex))
            raise RelayError(str(ex) or ex.__class__.__name__) from ex

        metadata = to_metadata(task.result())
        logger.info("Gemini upload complete", icon=LogIcon.SUCCESS, name=metadata.get("name"))
        return metadata

    def _abandon(self, task: asyncio.Task) -> None:
        self._abandoned.add(task)
        task.add_done_callback(self._on_abandoned_settled)

    def _on_abandoned_settled(self, task: asyncio.Task) -> None:
        self._abandoned.discard(task)
        if task.cancelled():
            logger.info("Abandoned Gemini upload cancelled", icon=LogIcon.TIMEOUT)
        elif (ex := task.exception()) is not None:
            logger.warning("Abandoned Gemini upload failed", icon=LogIcon.TIMEOUT, error=str(ex))
        else:
            logger.info("Abandoned Gemini upload settled", icon=LogIcon.TIMEOUT)
