"""Event-based startup and shutdown for the gateway's shared resources."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from typing import Any, Generic, TypeVar

from robyn import Robyn

from upload_gateway.core.logger import LogIcon, logger
from upload_gateway.core.settings import settings as st

AsyncHandler = Callable[[], Coroutine[Any, Any, None]]

T = TypeVar("T")


class State:
    """Application state shared with handlers through Robyn global dependencies."""

    __slots__ = ("_data",)

    def __init__(self) -> None:
        object.__setattr__(self, "_data", {})

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"State has no attribute '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._data[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self._data

    def __repr__(self) -> str:
        return f"State({sorted(self._data)})"

    def get(self, name: str, default: Any = None) -> Any:
        return self._data.get(name, default)

    def clear(self) -> None:
        self._data.clear()


class BaseEvent(ABC, Generic[T]):
    """A named resource built at startup and stored on the shared state."""

    name: str
    state: State

    @abstractmethod
    async def startup(self) -> T:
        ...

    async def shutdown(self, instance: T) -> None:  # noqa: B027
        """Optional cleanup. Override if cleanup is needed."""

    @classmethod
    def has_shutdown(cls) -> bool:
        return cls.shutdown is not BaseEvent.shutdown


class Lifespan:
    """Runs registered events in order at startup and in reverse at shutdown."""

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._event_classes: list[type[BaseEvent[Any]]] = []
        self._events: list[BaseEvent[Any]] = []
        self._state = State()

    def register(self, event_cls: type[BaseEvent[Any]]) -> "Lifespan":
        """Register an event class. Returns self for chaining."""
        self._event_classes.append(event_cls)
        return self

    @property
    def state(self) -> State:
        return self._state

    @property
    def events(self) -> list[BaseEvent[Any]]:
        return self._events

    def inject(self) -> None:
        """Expose the state to handlers as ``global_dependencies["state"]``."""
        self._app.inject_global(state=self._state)

    @property
    def startup(self) -> AsyncHandler:
        async def _startup() -> None:
            logger.info("Starting gateway", icon=LogIcon.START, version=st.API_VERSION)

            for event_cls in self._event_classes:
                event = event_cls()
                event.state = self._state

                instance = await event.startup()
                setattr(self._state, event.name, instance)
                logger.info(f"Event ready: {event.name}", icon=LogIcon.SUCCESS)

                self._events.append(event)

            logger.info("Gateway ready", icon=LogIcon.COMPLETE)

        return _startup

    @property
    def shutdown(self) -> AsyncHandler:
        async def _shutdown() -> None:
            for event in reversed(self._events):
                if event.has_shutdown() and event.name in self._state:
                    await event.shutdown(getattr(self._state, event.name))
                    logger.info(f"Shutdown complete: {event.name}", icon=LogIcon.SUCCESS)

            self._events.clear()
            self._state.clear()
            logger.info("Gateway stopped", icon=LogIcon.COMPLETE)

        return _shutdown


def create_lifespan(app: Robyn) -> Lifespan:
    """Create lifespan manager and inject its state into the app."""
    lifespan = Lifespan(app)
    lifespan.inject()
    return lifespan
