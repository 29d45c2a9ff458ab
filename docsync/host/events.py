"""
Host event plumbing.

Event sources hand out Disposable subscriptions. Disposing a subscription
removes the callback; disposing it again does nothing.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


class Disposable:
    """A subscription or resource that can be released exactly once."""

    def __init__(self, on_dispose: Callable[[], Any] | None = None) -> None:
        self._on_dispose = on_dispose
        self.disposed = False

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        if self._on_dispose is not None:
            callback, self._on_dispose = self._on_dispose, None
            callback()


class CompositeDisposable(Disposable):
    """
    Groups disposables so they can be released together.

    Anything added after the composite was disposed is disposed immediately.
    """

    def __init__(self, *disposables: Disposable) -> None:
        super().__init__()
        self._disposables: list[Disposable] = []
        self.add(*disposables)

    def add(self, *disposables: Disposable) -> None:
        for disposable in disposables:
            if self.disposed:
                disposable.dispose()
            else:
                self._disposables.append(disposable)

    def remove(self, disposable: Disposable) -> None:
        if disposable in self._disposables:
            self._disposables.remove(disposable)

    def __len__(self) -> int:
        return len(self._disposables)

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        disposables, self._disposables = self._disposables, []
        for disposable in disposables:
            disposable.dispose()


class Emitter(Generic[T]):
    """
    Synchronous event source.

    Callbacks run in subscription order inside emit(). A callback unsubscribed
    while an emit is in progress is not called for that emit.
    """

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription[T]] = []

    def on(self, handler: Callable[[T], Any]) -> Disposable:
        subscription = _Subscription(handler)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            subscription.active = False
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return Disposable(unsubscribe)

    def emit(self, value: T) -> None:
        for subscription in list(self._subscriptions):
            if subscription.active:
                subscription.handler(value)

    def clear(self) -> None:
        for subscription in self._subscriptions:
            subscription.active = False
        self._subscriptions.clear()

    @property
    def handler_count(self) -> int:
        return len(self._subscriptions)


class _Subscription(Generic[T]):
    __slots__ = ("handler", "active")

    def __init__(self, handler: Callable[[T], Any]) -> None:
        self.handler = handler
        self.active = True
