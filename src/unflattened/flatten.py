"""Flatten pipeline: stream a tree into a pre-ordered list of its nodes.

A walker thread visits the tree depth-first and pushes every node into a
bounded FIFO channel while the calling thread drains it. Each node's children
are unlinked once its whole subtree has been emitted, so a flattened tree cannot
be walked a second time.
"""

from __future__ import annotations

import queue
import threading
import time
from typing import Any, Iterator, List

from .config.policies import FlattenPolicy
from .contracts import Flattenable
from .errors import (
    ChildAccessError,
    FlattenCancelledError,
    FlattenTimeoutError,
    UnflattenedError,
)
from .utils.logging import get_logger

_LOGGER = get_logger(module=__name__)

_END = object()


class FlattenStream:
    """Single-use iterator yielding a tree's nodes in pre-order.

    Iterating starts the walker thread. Breaking out of the loop, closing the
    iterator or calling :meth:`cancel` stops the walker; nodes whose subtree
    was not completed keep their children.
    """

    def __init__(self, root: Flattenable, *, policy: FlattenPolicy | None = None) -> None:
        self._root = root
        self._policy = policy or FlattenPolicy()
        self._channel: "queue.Queue[Any]" = queue.Queue(maxsize=self._policy.buffer_size)
        self._cancelled = threading.Event()
        self._done = threading.Event()
        self._error: BaseException | None = None
        self._thread: threading.Thread | None = None
        self._emitted = 0

    @property
    def policy(self) -> FlattenPolicy:
        return self._policy

    @property
    def emitted(self) -> int:
        """Number of nodes the walker has pushed into the channel so far."""

        return self._emitted

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Ask the walker to stop at its next node."""

        self._cancelled.set()

    def __iter__(self) -> Iterator[Any]:
        if self._thread is not None:
            raise UnflattenedError("flatten streams can only be iterated once")
        self._thread = threading.Thread(
            target=self._produce,
            name="unflattened-walker",
            daemon=True,
        )
        self._thread.start()
        return self._consume()

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------
    def _consume(self) -> Iterator[Any]:
        deadline = None
        if self._policy.timeout_seconds is not None:
            deadline = time.monotonic() + self._policy.timeout_seconds

        finished = False
        try:
            while True:
                item = self._receive(deadline)
                if item is _END:
                    break
                yield item
            finished = True
        finally:
            if not finished:
                self.cancel()
                self._stop_walker()

        if self._thread is not None:
            self._thread.join()
        if self._error is not None:
            raise self._error
        _LOGGER.debug("Flatten traversal finished", emitted=self._emitted)

    def _stop_walker(self) -> None:
        if self._thread is None:
            return
        self._thread.join(timeout=self._policy.poll_interval_seconds * 4)
        if self._thread.is_alive():
            _LOGGER.warning("Flatten walker still busy after cancel", emitted=self._emitted)

    def _receive(self, deadline: float | None) -> Any:
        while True:
            wait = self._policy.poll_interval_seconds
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self.cancel()
                    _LOGGER.warning(
                        "Flatten traversal timed out",
                        timeout=self._policy.timeout_seconds,
                        emitted=self._emitted,
                    )
                    raise FlattenTimeoutError(
                        f"flatten exceeded {self._policy.timeout_seconds}s after {self._emitted} nodes"
                    )
                wait = min(wait, remaining)
            try:
                return self._channel.get(timeout=wait)
            except queue.Empty:
                if self._done.is_set() and self._channel.empty():
                    return _END

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------
    def _produce(self) -> None:
        try:
            self._walk(self._root)
        except Exception as exc:
            self._error = exc
            if not isinstance(exc, FlattenCancelledError):
                _LOGGER.warning("Flatten traversal aborted", error=str(exc), emitted=self._emitted)
        finally:
            self._done.set()
            try:
                self._channel.put_nowait(_END)
            except queue.Full:
                pass

    def _walk(self, root: Flattenable) -> None:
        self._emit(root)
        stack = [(root, iter(self._read_children(root)))]
        while stack:
            node, pending = stack[-1]
            child = next(pending, _END)
            if child is _END:
                stack.pop()
                # entity methods may block, so re-check before mutating
                self._check_cancelled()
                self._unlink(node)
                continue
            self._emit(child)
            stack.append((child, iter(self._read_children(child))))

    def _check_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise FlattenCancelledError(f"flatten cancelled after {self._emitted} nodes")

    def _read_children(self, entity: Flattenable) -> List[Flattenable]:
        self._check_cancelled()
        return self._children_of(entity)

    def _emit(self, entity: Flattenable) -> None:
        while True:
            self._check_cancelled()
            try:
                self._channel.put(entity, timeout=self._policy.poll_interval_seconds)
            except queue.Full:
                continue
            self._emitted += 1
            return

    @staticmethod
    def _children_of(entity: Flattenable) -> List[Flattenable]:
        try:
            return list(entity.get_children())
        except UnflattenedError:
            raise
        except Exception as exc:
            raise ChildAccessError(
                f"reading children of {type(entity).__name__} failed: {exc}"
            ) from exc

    @staticmethod
    def _unlink(entity: Flattenable) -> None:
        try:
            entity.unlink_children()
        except UnflattenedError:
            raise
        except Exception as exc:
            raise ChildAccessError(
                f"unlinking children of {type(entity).__name__} failed: {exc}"
            ) from exc


def iter_flatten(root: Flattenable, *, policy: FlattenPolicy | None = None) -> FlattenStream:
    """Return a lazy, single-use pre-order stream over ``root``'s subtree."""

    return FlattenStream(root, policy=policy)


def flatten_uf(root: Flattenable, *, policy: FlattenPolicy | None = None) -> List[Flattenable]:
    """Flatten ``root`` into a list of every node in its subtree, root first.

    On failure the raised :class:`UnflattenedError` carries the nodes collected
    so far in ``partial``.
    """

    entities: List[Flattenable] = []
    try:
        for entity in iter_flatten(root, policy=policy):
            entities.append(entity)
    except UnflattenedError as exc:
        exc.partial = list(entities)
        raise
    return entities


__all__ = ["FlattenStream", "iter_flatten", "flatten_uf"]
