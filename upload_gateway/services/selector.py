"""Per-request choice between memory and disk buffering."""

from typing import Protocol

from upload_gateway.core.logger import LogIcon, logger
from upload_gateway.core.settings import Settings
from upload_gateway.models.core import StorageMode
from upload_gateway.services.memory import MemoryProbe, MemorySample


class SupportsSample(Protocol):
    def sample(self) -> MemorySample: ...


def parse_content_length(raw: str | None) -> int:
    """Advisory size from a Content-Length header; absent or invalid counts as 0."""
    if not raw:
        return 0
    try:
        value = int(raw.strip())
    except ValueError:
        return 0
    return max(value, 0)


class StorageSelector:
    """Decides the buffering mode from the declared size and memory pressure.

    Both comparisons are strict: a declared size equal to ``disk_fallback_size``
    or a usage ratio equal to ``memory_threshold`` still buffers in memory.
    """

    def __init__(self, probe: SupportsSample, memory_threshold: float, disk_fallback_size: int) -> None:
        self._probe = probe
        self.memory_threshold = memory_threshold
        self.disk_fallback_size = disk_fallback_size

    @classmethod
    def from_settings(cls, st: Settings, probe: SupportsSample | None = None) -> "StorageSelector":
        return cls(
            probe=probe or MemoryProbe(),
            memory_threshold=st.MEMORY_THRESHOLD,
            disk_fallback_size=st.DISK_FALLBACK_SIZE,
        )

    def decide(self, declared_size: int) -> StorageMode:
        try:
            usage_ratio = self._probe.sample().usage_ratio
        except Exception as ex:
            logger.error("Memory probe failed, using disk storage", icon=LogIcon.DISK, error=str(ex))
            return StorageMode.DISK

        too_large = declared_size > self.disk_fallback_size
        under_pressure = usage_ratio > self.memory_threshold
        if too_large or under_pressure:
            logger.info(
                "Using disk storage due to file size or memory pressure",
                icon=LogIcon.DISK,
                declared_size=declared_size,
                too_large=too_large,
                under_pressure=under_pressure,
            )
            return StorageMode.DISK
        return StorageMode.MEMORY
