"""Host memory sampling."""

from dataclasses import dataclass

import psutil

from upload_gateway.core.errors import MemoryProbeError
from upload_gateway.core.logger import LogIcon, logger

_MB = 1024 * 1024


@dataclass(frozen=True, slots=True)
class MemorySample:
    free_bytes: int
    total_bytes: int

    @property
    def usage_ratio(self) -> float:
        """Fraction of total memory currently in use."""
        return 1 - (self.free_bytes / self.total_bytes)


class MemoryProbe:
    """Reads free/total host memory through psutil."""

    def sample(self) -> MemorySample:
        try:
            stats = psutil.virtual_memory()
        except (psutil.Error, OSError) as ex:
            raise MemoryProbeError(f"Host memory statistics unavailable: {ex}") from ex

        if stats.total <= 0:
            raise MemoryProbeError(f"Invalid total memory reported: {stats.total}")

        sample = MemorySample(free_bytes=stats.available, total_bytes=stats.total)
        logger.info(
            "Memory stats",
            icon=LogIcon.MEMORY,
            free_mb=round(sample.free_bytes / _MB),
            total_mb=round(sample.total_bytes / _MB),
            usage_pct=round(sample.usage_ratio * 100),
        )
        return sample
