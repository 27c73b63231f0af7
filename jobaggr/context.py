"""Cancellable fetch contexts.

A FetchContext carries a cancellation signal and an optional deadline from a
caller down into every source it dispatches to. Contexts form a tree: a child
derived with with_cancel() or with_timeout() is cancelled whenever its parent
is, inherits the parent's reason, and never outlives the parent's deadline.

Cancellation is cooperative. Sources poll ``ctx.done()`` or call
``ctx.raise_if_cancelled()`` at convenient points, cap their blocking calls
with ``ctx.remaining()``, or block on ``ctx.wait()``.

Example:
    >>> with FetchContext().with_timeout(30) as ctx:
    ...     jobs = aggregator.fetch_jobs(ctx, "python", "Remote")
"""

import threading
import time
from typing import Callable, List, Optional, Type


class FetchContextError(Exception):
    """Base exception for errors signalled by a FetchContext.

    These are never raised by sources for their own failures, so callers can
    tell "the search was cut short" apart from "a source broke".
    """

    pass


class FetchCancelledError(FetchContextError):
    """The context was cancelled before the work completed."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class FetchTimeoutError(FetchCancelledError):
    """The context's deadline passed before the work completed.

    Subclass of FetchCancelledError: a deadline is a cancellation that fires
    on its own. Callers that want to retry on timeouts only can catch this
    class specifically.
    """

    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)


DoneCallback = Callable[["FetchContext"], None]


class FetchContext:
    """Cancellation signal with optional deadline, shared across threads.

    Attributes:
        deadline: Absolute ``time.monotonic()`` value after which the context
            expires, or None for no deadline
    """

    def __init__(
        self,
        parent: Optional["FetchContext"] = None,
        deadline: Optional[float] = None,
    ) -> None:
        """Create a context.

        Prefer ``FetchContext()`` for a root and the ``with_*`` methods for
        children.

        Args:
            parent: Context whose cancellation propagates to this one
            deadline: Absolute time.monotonic() deadline; clamped to the parent's
        """
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._reason: Optional[Type[FetchContextError]] = None
        self._callbacks: List[DoneCallback] = []
        self._timer: Optional[threading.Timer] = None
        self._parent = parent

        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline

        if parent is not None:
            # Runs immediately if the parent is already done
            parent.add_done_callback(self._on_parent_done)

        if self.deadline is not None and not self.done():
            remaining = self.deadline - time.monotonic()
            if remaining <= 0:
                self._finish(FetchTimeoutError)
            else:
                timer = threading.Timer(remaining, self._finish, args=(FetchTimeoutError,))
                timer.daemon = True
                with self._lock:
                    if self._reason is None:
                        self._timer = timer
                        timer.start()

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def with_cancel(self) -> "FetchContext":
        """Derive a child that can be cancelled independently of this context."""
        return FetchContext(parent=self)

    def with_timeout(self, seconds: float) -> "FetchContext":
        """Derive a child that expires ``seconds`` from now."""
        return FetchContext(parent=self, deadline=time.monotonic() + seconds)

    def with_deadline(self, deadline: float) -> "FetchContext":
        """Derive a child that expires at the absolute monotonic time ``deadline``."""
        return FetchContext(parent=self, deadline=deadline)

    # ------------------------------------------------------------------
    # Signalling
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Cancel this context and all of its descendants.

        Idempotent: the first reason recorded (cancel or deadline) wins.
        Also releases the deadline timer and the link to the parent.
        """
        self._finish(FetchCancelledError)

    def done(self) -> bool:
        """Return True once the context has been cancelled or has expired."""
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the context is done or ``timeout`` seconds pass.

        Returns:
            True if the context is done, False on timeout
        """
        return self._done.wait(timeout)

    @property
    def error(self) -> Optional[FetchContextError]:
        """A fresh exception describing why the context ended, or None if it is live."""
        reason = self._reason
        if reason is None:
            return None
        return reason()

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline (never negative), or None without a deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        """Raise the context's error if it is done; return otherwise.

        Raises:
            FetchCancelledError: If the context was cancelled
            FetchTimeoutError: If the context's deadline passed
        """
        error = self.error
        if error is not None:
            raise error

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def add_done_callback(self, fn: DoneCallback) -> None:
        """Call ``fn(ctx)`` once the context is done.

        If the context is already done, ``fn`` runs immediately in the
        calling thread. Otherwise it runs in whichever thread ends the
        context, so it must be quick and must not block.
        """
        with self._lock:
            if self._reason is None:
                self._callbacks.append(fn)
                return
        fn(self)

    def remove_done_callback(self, fn: DoneCallback) -> None:
        """Unregister a callback added with add_done_callback(); no-op if absent."""
        with self._lock:
            if fn in self._callbacks:
                self._callbacks.remove(fn)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _on_parent_done(self, parent: "FetchContext") -> None:
        self._finish(parent._reason or FetchCancelledError)

    def _finish(self, reason: Type[FetchContextError]) -> None:
        with self._lock:
            if self._reason is not None:
                return
            self._reason = reason
            callbacks, self._callbacks = self._callbacks, []
            timer, self._timer = self._timer, None

        self._done.set()

        if timer is not None:
            timer.cancel()
        if self._parent is not None:
            self._parent.remove_done_callback(self._on_parent_done)

        for callback in callbacks:
            callback(self)

    def __enter__(self) -> "FetchContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.cancel()
        return False

    def __repr__(self) -> str:
        if self._reason is None:
            state = "live"
        elif issubclass(self._reason, FetchTimeoutError):
            state = "expired"
        else:
            state = "cancelled"
        return f"<FetchContext {state} deadline={self.deadline!r}>"
