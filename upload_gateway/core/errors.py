"""Error taxonomy for the upload gateway."""

from robyn import status_codes

from upload_gateway.models.core import StorageMode


class GatewayError(Exception):
    """Base class for errors raised while handling an upload."""

    status_code: int = status_codes.HTTP_500_INTERNAL_SERVER_ERROR


class MemoryProbeError(GatewayError):
    """Host memory statistics could not be read."""


class UploadRejectedError(GatewayError):
    """The request body violates a receiver rule; answered with 400."""

    status_code = status_codes.HTTP_400_BAD_REQUEST
    limit: str | None = None

    def __init__(self, message: str, limit: str | None = None) -> None:
        super().__init__(message)
        if limit is not None:
            self.limit = limit

    @property
    def message(self) -> str:
        return str(self.args[0])


class NoFileUploadedError(UploadRejectedError):
    def __init__(self) -> None:
        super().__init__("No file uploaded")


class PayloadTooLargeError(UploadRejectedError):
    limit = "fileSize"


class TooManyFilesError(UploadRejectedError):
    limit = "files"


class RelayError(GatewayError):
    """The ingestion API call failed; the message is the provider's."""


class UploadTimeoutError(RelayError):
    """The ingestion API call did not settle in time."""


class UploadFailedError(GatewayError):
    """Any failure after the storage decision, tagged with the chosen mode."""

    def __init__(self, details: str, storage_mode: StorageMode) -> None:
        super().__init__(details)
        self.details = details
        self.storage_mode = storage_mode
