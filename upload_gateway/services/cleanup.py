"""Best-effort removal of per-request temporary files."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from upload_gateway.core.logger import LogIcon, logger


class CleanupScope:
    """Paths to delete when the owning request finishes."""

    __slots__ = ("_paths",)

    def __init__(self) -> None:
        self._paths: list[Path] = []

    def track(self, path: Path) -> Path:
        if path not in self._paths:
            self._paths.append(path)
        return path

    @property
    def paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)


class CleanupCoordinator:
    """Deletes temp artifacts; failures are logged and never raised."""

    def remove(self, path: Path) -> bool:
        try:
            path.unlink(missing_ok=True)
        except OSError as ex:
            logger.warning("Failed to clean up file", icon=LogIcon.CLEANUP, path=str(path), error=str(ex))
            return False
        logger.debug("Temp file removed", icon=LogIcon.CLEANUP, path=str(path))
        return True

    @contextmanager
    def scope(self) -> Iterator[CleanupScope]:
        """Yield a scope whose tracked paths are removed on every exit path."""
        scope = CleanupScope()
        try:
            yield scope
        finally:
            for path in scope.paths:
                self.remove(path)
