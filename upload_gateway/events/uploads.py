"""Lifespan events for the uploads directory and the upload pipeline."""

from pathlib import Path

from upload_gateway.core.lifespan import BaseEvent
from upload_gateway.core.logger import LogIcon, logger
from upload_gateway.core.settings import settings as st
from upload_gateway.services.gateway import UploadService


def ensure_uploads_dir(path: Path) -> Path:
    """Create the uploads directory if it does not exist yet."""
    path.mkdir(parents=True, exist_ok=True)
    return path


class UploadsDirectoryEvent(BaseEvent[Path]):
    """Creates the directory disk buffers and temp files are written to."""

    name = "uploads_dir"

    async def startup(self) -> Path:
        path = ensure_uploads_dir(st.UPLOADS_PATH)
        logger.info("Uploads directory ready", icon=LogIcon.DISK, path=str(path))
        return path


class UploadServiceEvent(BaseEvent[UploadService]):
    """Builds the upload pipeline; needs ``uploads_dir`` on the state."""

    name = "upload_service"

    async def startup(self) -> UploadService:
        return UploadService.from_settings(st, uploads_dir=self.state.uploads_dir)

    async def shutdown(self, instance: UploadService) -> None:
        if pending := instance.relay.abandoned:
            logger.warning("Shutting down with abandoned Gemini uploads", icon=LogIcon.TIMEOUT, pending=pending)
