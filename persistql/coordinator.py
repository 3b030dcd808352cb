"""
Publish/Subscribe Coordinator - shares manifests between build passes.

A producing pass publishes every manifest it builds to its
:class:`ManifestCoordinator`. Consumer passes subscribe to it and receive
each changed manifest synchronously, in registration order.

A consumer that tries to resolve the manifest module before anything was
published is suspended by its :class:`ResolutionGate` until the first
publication arrives. The gate has no timeout: if the producer never
publishes, the suspended resolution never completes and the host build
hangs on that module. Hosts that need a bound must apply their own
pass-level timeout.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, List, Optional, Protocol, Tuple

logger = logging.getLogger("persistql.coordinator")


class CoordinatorState(str, Enum):
    """Publication state of a coordinator."""
    UNINITIALIZED = "uninitialized"
    PUBLISHED = "published"


class GateState(str, Enum):
    """State of a consumer's one-shot resolution gate."""
    WAITING = "waiting"
    RELEASED = "released"


@dataclass(frozen=True)
class PublicationRecord:
    """The manifest currently agreed on by a coordinator. Replaced, never mutated."""

    manifest: str
    revision: int


class ManifestSubscriber(Protocol):
    """Anything that wants every manifest update."""

    def on_update(self, manifest: str) -> None:
        ...


# ============================================================================
# Coordinator
# ============================================================================


class ManifestCoordinator:
    """
    Holds the publication record and fans updates out to subscribers.

    The record has a single writer (the owning plugin) and is swapped as a
    whole, so readers on other threads see either the previous manifest or
    the new one.
    """

    def __init__(self, name: str = "manifest") -> None:
        self.name = name
        self._record: Optional[PublicationRecord] = None
        self._subscribers: List[ManifestSubscriber] = []
        self._lock = threading.Lock()

    @property
    def record(self) -> Optional[PublicationRecord]:
        return self._record

    @property
    def current(self) -> Optional[str]:
        """Current manifest JSON, or ``None`` before the first publication."""
        record = self._record
        return record.manifest if record is not None else None

    @property
    def revision(self) -> int:
        record = self._record
        return record.revision if record is not None else 0

    @property
    def state(self) -> CoordinatorState:
        if self._record is None:
            return CoordinatorState.UNINITIALIZED
        return CoordinatorState.PUBLISHED

    @property
    def subscribers(self) -> Tuple[ManifestSubscriber, ...]:
        with self._lock:
            return tuple(self._subscribers)

    def subscribe(self, subscriber: ManifestSubscriber) -> None:
        """Register *subscriber* for every future update. Allowed before first publication."""
        with self._lock:
            if any(existing is subscriber for existing in self._subscribers):
                return
            self._subscribers.append(subscriber)
        logger.debug("%s: subscriber %r registered", self.name, subscriber)

    def unsubscribe(self, subscriber: ManifestSubscriber) -> bool:
        with self._lock:
            for index, existing in enumerate(self._subscribers):
                if existing is subscriber:
                    del self._subscribers[index]
                    return True
        return False

    def publish(self, manifest: str) -> bool:
        """
        Publish *manifest* (serialized JSON).

        Unchanged content is a no-op. Changed content replaces the record
        and is delivered to every subscriber, synchronously and in
        registration order.

        Returns:
            True when the record changed.
        """
        with self._lock:
            if self._record is not None and self._record.manifest == manifest:
                return False
            self._record = PublicationRecord(manifest=manifest, revision=self.revision + 1)
            subscribers = tuple(self._subscribers)
            revision = self._record.revision

        logger.info(
            "%s: published revision %d to %d subscriber(s)",
            self.name,
            revision,
            len(subscribers),
        )
        for subscriber in subscribers:
            subscriber.on_update(manifest)
        return True


# ============================================================================
# Resolution Gate
# ============================================================================


class ResolutionGate:
    """
    One-shot gate suspending manifest-module resolutions.

    ``WAITING`` until :meth:`release` is called, then ``RELEASED`` for
    good. Continuations deferred while waiting are queued and run once, in
    order, on release; continuations deferred afterwards run immediately.
    """

    def __init__(self, name: str = "gate") -> None:
        self.name = name
        self._state = GateState.WAITING
        self._pending: Deque[Callable[[], None]] = deque()
        self._lock = threading.Lock()

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def is_released(self) -> bool:
        return self._state is GateState.RELEASED

    @property
    def pending(self) -> int:
        """Number of suspended continuations."""
        with self._lock:
            return len(self._pending)

    def defer(self, continuation: Callable[[], None]) -> bool:
        """
        Run *continuation* now if released, otherwise queue it.

        Returns:
            True when the continuation was suspended.
        """
        with self._lock:
            if self._state is GateState.WAITING:
                self._pending.append(continuation)
                queued = len(self._pending)
            else:
                queued = 0

        if queued:
            logger.debug("%s: resolution suspended (%d pending)", self.name, queued)
            return True
        continuation()
        return False

    def release(self) -> int:
        """
        Open the gate and run every suspended continuation.

        Returns:
            Number of continuations run (0 when already released).
        """
        with self._lock:
            if self._state is GateState.RELEASED:
                return 0
            self._state = GateState.RELEASED
            pending, self._pending = self._pending, deque()

        logger.debug("%s: released %d suspended resolution(s)", self.name, len(pending))
        for continuation in pending:
            continuation()
        return len(pending)

    async def wait(self) -> None:
        """Suspend the calling coroutine until the gate is released."""
        if self.is_released:
            return
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def wake() -> None:
            if not future.done():
                future.set_result(None)

        self.defer(lambda: loop.call_soon_threadsafe(wake))
        await future
