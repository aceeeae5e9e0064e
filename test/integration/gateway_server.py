"""Runs the gateway with a local stand-in for the Gemini files API.

Started as a subprocess by the live server tests; configured through the
same environment variables as the real service.
"""

from pathlib import Path
from typing import Any

from upload_gateway.core.lifespan import BaseEvent
from upload_gateway.main import lifespan, main
from upload_gateway.services.gateway import UploadService
from upload_gateway.services.relay import GeminiRelayClient


class RecordingFiles:
    """Answers like the files API and reports which file it was handed."""

    def __init__(self) -> None:
        self.count = 0

    async def upload(self, *, file: str, config: dict[str, Any]) -> dict[str, Any]:
        self.count += 1
        path = Path(file)
        return {
            "name": f"files/{self.count}",
            "displayName": config["display_name"],
            "mimeType": config["mime_type"],
            "sizeBytes": str(path.stat().st_size),
            "source": path.name,
        }


class LocalFilesEvent(BaseEvent[GeminiRelayClient]):
    name = "local_files"

    async def startup(self) -> GeminiRelayClient:
        service: UploadService = self.state.upload_service
        service.relay = GeminiRelayClient(
            uploads_dir=service.relay.uploads_dir,
            files=RecordingFiles(),
            timeout=service.relay.timeout,
        )
        return service.relay


lifespan.register(LocalFilesEvent)

if __name__ == "__main__":
    main()
