"""Test fixtures for gemini-upload-gateway unit tests."""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from upload_gateway.middlewares.cors import CorsPolicy
from upload_gateway.services.cleanup import CleanupCoordinator
from upload_gateway.services.gateway import UploadService
from upload_gateway.services.memory import MemorySample
from upload_gateway.services.receiver import UploadReceiver
from upload_gateway.services.relay import GeminiRelayClient
from upload_gateway.services.selector import StorageSelector

MiB = 1024 * 1024
ALLOWED_ORIGIN = "http://localhost:3000"
MULTIPART_OVERHEAD = 200

# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request (case-insensitive keys)."""

    _data: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._data = {k.lower(): v for k, v in self._data.items()}

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key.lower(), default)

    def set(self, key: str, value: str) -> None:
        self._data[key.lower()] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()]


@dataclass
class MockUrl:
    """Mock Url object for Robyn Request."""

    path: str = "/upload"
    scheme: str = "http"
    host: str = "localhost"


@dataclass
class MockRequest:
    """Mock Request object for Robyn, shaped like a parsed multipart request.

    Robyn parses multipart bodies itself: ``files`` maps client filename to
    content and ``body`` holds no multipart framing.
    """

    files: dict[str, bytes] = field(default_factory=dict)
    headers: MockHeaders = field(default_factory=MockHeaders)
    method: str = "POST"
    url: MockUrl = field(default_factory=MockUrl)
    body: bytes | str = b""


def upload_request(
    content: bytes = b"hello",
    filename: str = "notes.txt",
    content_length: int | None = None,
    origin: str | None = None,
    files: dict[str, bytes] | None = None,
) -> MockRequest:
    """Single-file upload request as Robyn hands it to a handler."""
    files = {filename: content} if files is None else files
    declared = sum(len(data) for data in files.values()) + MULTIPART_OVERHEAD
    headers = {
        "Content-Type": "multipart/form-data; boundary=----gateway",
        "Content-Length": str(declared if content_length is None else content_length),
    }
    if origin:
        headers["Origin"] = origin
    return MockRequest(files=files, headers=MockHeaders(headers))


# -----------------------------------------------------------------------------
# Fakes for host memory and the Gemini files API
# -----------------------------------------------------------------------------


class FakeProbe:
    """Memory probe reporting a fixed usage ratio."""

    def __init__(self, usage_ratio: float = 0.1, total_bytes: int = 16 * 1024 * MiB) -> None:
        self.total_bytes = total_bytes
        self.free_bytes = round(total_bytes * (1 - usage_ratio))
        self.calls = 0

    def sample(self) -> MemorySample:
        self.calls += 1
        return MemorySample(free_bytes=self.free_bytes, total_bytes=self.total_bytes)


class FailingProbe:
    def sample(self) -> MemorySample:
        raise RuntimeError("host introspection unavailable")


class FakeFiles:
    """Records uploads and checks the file exists while the call runs."""

    def __init__(self, result: Any = None) -> None:
        self.result = result
        self.calls: list[dict[str, Any]] = []

    async def upload(self, *, file: str, config: dict[str, Any]) -> Any:
        path = Path(file)
        self.calls.append(
            {
                "file": file,
                "config": config,
                "existed": path.exists(),
                "content": path.read_bytes() if path.exists() else None,
            }
        )
        if self.result is not None:
            return self.result
        return {
            "name": f"files/{len(self.calls)}",
            "displayName": config["display_name"],
            "mimeType": config["mime_type"],
            "state": "ACTIVE",
        }


class FailingFiles:
    def __init__(self, message: str = "API key not valid") -> None:
        self.message = message
        self.calls = 0

    async def upload(self, *, file: str, config: dict[str, Any]) -> Any:
        self.calls += 1
        raise RuntimeError(self.message)


class HangingFiles:
    """Never settles until released, to exercise the timeout race."""

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.started = 0
        self.finished = 0

    async def upload(self, *, file: str, config: dict[str, Any]) -> Any:
        self.started += 1
        await self.release.wait()
        self.finished += 1
        return {"name": "files/late"}


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def uploads_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def cors_policy() -> CorsPolicy:
    return CorsPolicy(origins=[ALLOWED_ORIGIN, "https://ed-tech-steel.vercel.app"])


@pytest.fixture
def make_service(uploads_dir: Path):
    """Factory fixture building an UploadService around fakes."""

    def _make(
        probe: Any = None,
        files: Any = None,
        timeout: float = 5.0,
        max_file_size: int = 50 * MiB,
    ) -> UploadService:
        return UploadService(
            selector=StorageSelector(
                probe=probe or FakeProbe(0.1),
                memory_threshold=0.80,
                disk_fallback_size=15 * MiB,
            ),
            receiver=UploadReceiver(uploads_dir=uploads_dir, max_file_size=max_file_size),
            relay=GeminiRelayClient(uploads_dir=uploads_dir, files=files or FakeFiles(), timeout=timeout),
            cleanup=CleanupCoordinator(),
        )

    return _make

