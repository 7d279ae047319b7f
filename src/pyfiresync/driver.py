"""Store driver factory.

Usage::

    driver = make_store_driver("https://my-db.firebaseio.com", config=config)
    root = driver(snapshots)            # snapshots: Observable of state trees
    root.child("todos").get().subscribe(print)

Every snapshot emitted by ``snapshots`` is diffed against the previous one
and the differences are written to the store. The returned root accessor
reads store data and the ``$user`` / ``$lastError`` virtual namespaces.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import reactivex as rx
from reactivex import Observable
from reactivex import operators as ops
from reactivex.abc import DisposableBase

from pyfiresync._bridge import auth_to_observable
from pyfiresync.accessor import DriverContext, PathAccessor, create_accessor
from pyfiresync.auth import handle_authentication
from pyfiresync.changes import get_changes
from pyfiresync.config import FireSyncConfig
from pyfiresync.dispatcher import AuthDispatchFn, ChangeDispatcher, DiffFn
from pyfiresync.error_channel import ErrorChannel
from pyfiresync.exceptions import FireSyncConfigError
from pyfiresync.paths import ReservedPrefix
from pyfiresync.push_id import generate_push_id
from pyfiresync.resolver import VirtualNamespaceResolver, pluck
from pyfiresync.store import open_store
from pyfiresync.store.base import StoreRef

_logger = logging.getLogger(__name__)


class StoreDriver:
    """Callable driver connecting snapshot streams to one store.

    Parameters
    ----------
    base : str, StoreRef or None
        Store location. A string is opened with
        :func:`~pyfiresync.store.open_store`; a pre-built handle is used
        as-is; ``None`` falls back to ``config.database_url``.
    config : FireSyncConfig or None
        Driver configuration.
    diff, auth_dispatch, id_factory
        Collaborators computing changes, mapping login descriptors, and
        generating push ids.
    """

    def __init__(
        self,
        base: str | StoreRef | None = None,
        *,
        config: FireSyncConfig | None = None,
        diff: DiffFn = get_changes,
        auth_dispatch: AuthDispatchFn = handle_authentication,
        id_factory: Callable[[], str] = generate_push_id,
    ) -> None:
        self._config = config or FireSyncConfig()
        self._owns_store = False
        if base is None:
            base = self._config.database_url
            if not base:
                raise FireSyncConfigError("No store location given and config.database_url is empty")
        if isinstance(base, str):
            self._ref: StoreRef = open_store(base, self._config)
            self._owns_store = True
        else:
            self._ref = base

        self._diff = diff
        self._auth_dispatch = auth_dispatch
        self._id_factory = id_factory
        self._errors = ErrorChannel()
        self._subscriptions: list[DisposableBase] = []

    @property
    def ref(self) -> StoreRef:
        return self._ref

    @property
    def errors(self) -> Observable[BaseException]:
        return self._errors.as_observable()

    def __call__(self, snapshots: Observable[Mapping[str, Any]]) -> PathAccessor:
        dispatcher = ChangeDispatcher(
            self._ref,
            self._errors,
            diff=self._diff,
            auth_dispatch=self._auth_dispatch,
        )
        self._subscriptions.append(dispatcher.attach(snapshots))

        auth_stream = auth_to_observable(self._ref)
        resolver = VirtualNamespaceResolver(
            {
                ReservedPrefix.USER: auth_stream,
                ReservedPrefix.LAST_ERROR: self._errors.as_observable(),
            }
        )
        context = DriverContext(
            ref=self._ref,
            resolver=resolver,
            uid_stream=auth_stream.pipe(ops.map(lambda auth: pluck(auth, ("uid",)))),
            push_id_stream=rx.defer(lambda _scheduler: rx.just(self._id_factory())),
        )
        return create_accessor("", context)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Stop reconciling every attached snapshot stream and close the error channel."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.dispose()
        self._errors.close()

    async def aclose(self) -> None:
        """Dispose the driver and close a store it opened itself."""
        self.dispose()
        if self._owns_store:
            backend = getattr(self._ref, "backend", None)
            close = getattr(backend, "close", None)
            if close is not None:
                await close()

    async def __aenter__(self) -> StoreDriver:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()


def make_store_driver(
    base: str | StoreRef | None = None,
    *,
    config: FireSyncConfig | None = None,
    diff: DiffFn = get_changes,
    auth_dispatch: AuthDispatchFn = handle_authentication,
    id_factory: Callable[[], str] = generate_push_id,
) -> StoreDriver:
    """Create a driver for the store at *base*."""
    return StoreDriver(
        base,
        config=config,
        diff=diff,
        auth_dispatch=auth_dispatch,
        id_factory=id_factory,
    )
