import asyncio
import inspect
import logging
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from .errors import ResourceLoadError
from .instruments import SynthVoice, Voice
from .types import InstrumentKey

_LOG = logging.getLogger("harmonics.cache")

Loader = Callable[[InstrumentKey], Awaitable[Voice]]
ProgressCallback = Callable[[float], Optional[Awaitable[None]]]


class LoadState(Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


async def report_progress(callback: Optional[ProgressCallback], fraction: float) -> None:
    if callback is None:
        return
    result = callback(fraction)
    if inspect.isawaitable(result):
        await result


def _substitute_voice(key: InstrumentKey) -> Voice:
    return SynthVoice(key.family)


class InstrumentCache:
    """Loaded instrument voices keyed by instrument.

    Concurrent requests for one key share a single pending load. Loaded voices
    are kept for the life of the cache; failed keys may be retried.
    """

    def __init__(self, loader: Loader, substitute: Callable[[InstrumentKey], Voice] = _substitute_voice) -> None:
        self._loader = loader
        self._substitute = substitute
        self._resources: Dict[InstrumentKey, Voice] = {}
        self._pending: Dict[InstrumentKey, "asyncio.Task[Voice]"] = {}
        self._failures: Dict[InstrumentKey, BaseException] = {}
        self._lock = asyncio.Lock()

    def state(self, key: InstrumentKey) -> LoadState:
        if key in self._resources:
            return LoadState.LOADED
        if key in self._pending:
            return LoadState.LOADING
        if key in self._failures:
            return LoadState.FAILED
        return LoadState.UNLOADED

    async def load(self, key: InstrumentKey) -> Voice:
        """Return the loaded voice, raising ``ResourceLoadError`` if loading fails."""
        resource = self._resources.get(key)
        if resource is not None:
            return resource
        task = await self._start(key)
        if task is None:
            return self._resources[key]
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            # only the load was cancelled, not this caller
            if task.done() and task.cancelled():
                raise ResourceLoadError(f"{key.name}: loading was cancelled") from None
            raise

    async def acquire(self, key: InstrumentKey, wait: bool = True) -> Voice:
        """Loaded voice for ``key``, or a substitute synth voice.

        With ``wait=False`` the load continues in the background and the
        substitute is returned straight away.
        """
        resource = self._resources.get(key)
        if resource is not None:
            return resource
        if not wait:
            await self._start(key)
            return self._resources.get(key) or self._substitute(key)
        try:
            return await self.load(key)
        except ResourceLoadError:
            return self._substitute(key)

    async def preload_all(
        self,
        keys: Iterable[InstrumentKey],
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[InstrumentKey]:
        """Load keys in order, reporting ``completed/total`` after each. Returns the failed keys."""
        key_list = list(keys)
        failed: List[InstrumentKey] = []
        for idx, key in enumerate(key_list, start=1):
            try:
                await self.load(key)
            except ResourceLoadError:
                failed.append(key)
            await report_progress(on_progress, idx / len(key_list))
        return failed

    async def _start(self, key: InstrumentKey) -> "Optional[asyncio.Task[Voice]]":
        async with self._lock:
            if key in self._resources:
                return None
            task = self._pending.get(key)
            if task is None:
                task = asyncio.create_task(self._run_load(key))
                task.add_done_callback(_consume_result)
                self._pending[key] = task
            return task

    async def _run_load(self, key: InstrumentKey) -> Voice:
        _LOG.debug("Loading instrument %s", key.name)
        try:
            resource = await self._loader(key)
        except asyncio.CancelledError as exc:
            await self._record_failure(key, exc)
            _LOG.warning("Loading %s was cancelled; it will be retried on next use", key.name)
            raise
        except Exception as exc:
            await self._record_failure(key, exc)
            _LOG.warning("Loading %s failed (%s); using a synth voice instead", key.name, exc)
            if isinstance(exc, ResourceLoadError):
                raise
            raise ResourceLoadError(f"{key.name}: {exc}") from exc
        async with self._lock:
            self._resources[key] = resource
            self._failures.pop(key, None)
            self._pending.pop(key, None)
        _LOG.info("Instrument %s ready (%s)", key.name, getattr(resource, "name", resource))
        return resource

    async def _record_failure(self, key: InstrumentKey, exc: BaseException) -> None:
        async with self._lock:
            self._failures[key] = exc
            self._pending.pop(key, None)


def _consume_result(task: "asyncio.Task[Voice]") -> None:
    # background loads are already logged; keep asyncio from warning about them
    if not task.cancelled():
        task.exception()
