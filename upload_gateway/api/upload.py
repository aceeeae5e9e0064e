"""Upload endpoint relaying a single multipart file to the Gemini Files API."""

from robyn import Request, Response, status_codes

from upload_gateway.core.errors import UploadFailedError, UploadRejectedError
from upload_gateway.core.router import Router, json_response
from upload_gateway.core.settings import settings as st
from upload_gateway.middlewares.cors import CorsPolicy, request_origin
from upload_gateway.models.core import ErrorResponse, UploadFailureResponse, UploadResponse
from upload_gateway.services.gateway import UploadService
from upload_gateway.services.selector import parse_content_length

UPLOAD_ENDPOINT = "/upload"

router = Router(__file__, prefix="")
cors_policy = CorsPolicy.from_settings(st)


def request_files(request: Request) -> dict[str, bytes]:
    """File parts Robyn parsed from a multipart body, keyed by client filename."""
    files = getattr(request, "files", None) or {}
    return {
        filename: content.encode("utf-8") if isinstance(content, str) else bytes(content)
        for filename, content in files.items()
    }


async def handle_upload(request: Request, service: UploadService, policy: CorsPolicy) -> Response:
    """Run the upload pipeline for one request and map its outcome to HTTP."""
    cors_headers = policy.response_headers(request_origin(request))
    try:
        result = await service.process(
            content_length=parse_content_length(request.headers.get("content-length")),
            files=request_files(request),
        )
    except UploadRejectedError as ex:
        return json_response(status_codes.HTTP_400_BAD_REQUEST, ErrorResponse(error=ex.message), cors_headers)
    except UploadFailedError as ex:
        return json_response(
            status_codes.HTTP_500_INTERNAL_SERVER_ERROR,
            UploadFailureResponse(details=ex.details, storage_type=ex.storage_mode),
            cors_headers,
        )

    return json_response(status_codes.HTTP_200_OK, UploadResponse(metadata=result.metadata), cors_headers)


def handle_preflight(request: Request, policy: CorsPolicy) -> Response:
    return Response(
        status_code=status_codes.HTTP_204_NO_CONTENT,
        headers=policy.preflight_headers(request_origin(request)),
        description="",
    )


@router.post(UPLOAD_ENDPOINT)
async def upload(request: Request, global_dependencies) -> Response:
    """Upload one file (multipart field ``file``) to the Gemini Files API."""
    return await handle_upload(request, global_dependencies["state"].upload_service, cors_policy)


@router.options(UPLOAD_ENDPOINT)
async def upload_preflight(request: Request) -> Response:
    return handle_preflight(request, cors_policy)
