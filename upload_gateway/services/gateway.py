"""Per-request upload pipeline: decide, buffer, stage, relay, clean up."""

import asyncio
from collections.abc import Mapping
from pathlib import Path

from upload_gateway.core.errors import NoFileUploadedError, UploadFailedError, UploadRejectedError
from upload_gateway.core.logger import LogIcon, logger
from upload_gateway.core.settings import Settings
from upload_gateway.models.core import UploadResult
from upload_gateway.services.cleanup import CleanupCoordinator
from upload_gateway.services.receiver import UploadReceiver
from upload_gateway.services.relay import GeminiRelayClient
from upload_gateway.services.selector import StorageSelector


class UploadService:
    """Runs one upload through ``Received -> Buffered -> (Materialized) -> Relayed -> CleanedUp``.

    The storage mode is decided before the body is parsed and travels with
    the request as a local value. Every file written to disk for the request
    is tracked in a cleanup scope, so it is removed whether the relay
    succeeds, times out or fails.
    """

    def __init__(
        self,
        selector: StorageSelector,
        receiver: UploadReceiver,
        relay: GeminiRelayClient,
        cleanup: CleanupCoordinator,
    ) -> None:
        self.selector = selector
        self.receiver = receiver
        self.relay = relay
        self.cleanup = cleanup

    @classmethod
    def from_settings(cls, st: Settings, uploads_dir: Path | None = None) -> "UploadService":
        uploads_dir = uploads_dir or st.UPLOADS_PATH
        return cls(
            selector=StorageSelector.from_settings(st),
            receiver=UploadReceiver.from_settings(st, uploads_dir),
            relay=GeminiRelayClient.from_settings(st, uploads_dir),
            cleanup=CleanupCoordinator(),
        )

    async def process(self, content_length: int, files: Mapping[str, bytes]) -> UploadResult:
        storage_mode = self.selector.decide(content_length)

        with self.cleanup.scope() as scope:
            try:
                buffered = await asyncio.to_thread(self.receiver.receive, files, storage_mode)
                if buffered is None:
                    raise NoFileUploadedError()
                if buffered.path is not None:
                    scope.track(buffered.path)

                staged = scope.track(await asyncio.to_thread(self.relay.stage, buffered))
                metadata = await self.relay.relay(staged, buffered.mime_type, buffered.original_name)
            except UploadRejectedError:
                raise
            except Exception as ex:
                logger.error("Upload error", icon=LogIcon.ERROR, error=str(ex), storage=storage_mode)
                raise UploadFailedError(str(ex), storage_mode) from ex

        logger.info(
            "Upload relayed",
            icon=LogIcon.UPLOAD,
            file_size=buffered.size,
            storage=storage_mode,
        )
        return UploadResult(
            metadata=metadata,
            storage_mode=storage_mode,
            file_size=buffered.size,
            original_name=buffered.original_name,
        )
