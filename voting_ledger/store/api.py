"""
voting_ledger.store.api: the key/value store the ledger runs against.

The ledger never owns persistent state: every operation reads and writes
through a host-supplied handle implementing :class:`KVStore`.

Store API
---------
- get(key: str) -> bytes                      # b"" when the key is absent
- put(key: str, value: bytes) -> None
- scan(start: str, end: str) -> RangeIterator # start <= key < end, ascending
- compare_and_swap(key, expected, value) -> bool
- close() -> None

Range iterators are lazy, finite and not restartable. They MUST be released,
so they double as context managers:

    with store.scan("VOTER0", "VOTER999") as it:
        for key, value in it:
            ...

Backends raise :class:`voting_ledger.errors.StoreError` for any failure of
their underlying storage; "missing key" is never an error.
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional, Protocol, Tuple, runtime_checkable

from ..errors import StoreError

Entry = Tuple[str, bytes]


@runtime_checkable
class KVStore(Protocol):
    """Minimal store interface consumed by the ledger operations."""

    def get(self, key: str) -> bytes: ...
    def put(self, key: str, value: bytes) -> None: ...
    def scan(self, start: str, end: str) -> "RangeIterator": ...
    def compare_and_swap(self, key: str, expected: bytes, value: bytes) -> bool: ...
    def close(self) -> None: ...


class RangeIterator:
    """
    Lazy (key, value) iterator over a half-open key range.

    Wraps a backend generator and an optional release hook. Iterating a closed
    iterator raises StoreError; closing twice is a no-op.
    """

    def __init__(
        self,
        entries: Iterator[Entry],
        *,
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        self._entries = entries
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "RangeIterator":
        return self

    def __next__(self) -> Entry:
        if self._closed:
            raise StoreError("range iterator already closed")
        return next(self._entries)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            close_entries = getattr(self._entries, "close", None)
            if callable(close_entries):
                close_entries()
        finally:
            if self._on_close is not None:
                self._on_close()

    def __enter__(self) -> "RangeIterator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class GuardedStore:
    """
    Adapter over a host-supplied handle that reports every backend failure as
    StoreError, including failures raised while a scan is being drained.
    """

    def __init__(self, inner: KVStore) -> None:
        self.inner = inner

    def _call(self, op: str, fn: Callable, *args: object):
        try:
            return fn(*args)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError.wrap(op, e) from e

    # Attribute lookups happen inside _call: a host handle missing a primitive
    # is a store failure too.

    def get(self, key: str) -> bytes:
        return bytes(self._call("get", lambda: self.inner.get(key)) or b"")

    def put(self, key: str, value: bytes) -> None:
        self._call("put", lambda: self.inner.put(key, value))

    def compare_and_swap(self, key: str, expected: bytes, value: bytes) -> bool:
        return bool(
            self._call(
                "compare_and_swap",
                lambda: self.inner.compare_and_swap(key, expected, value),
            )
        )

    def scan(self, start: str, end: str) -> RangeIterator:
        it = self._call("scan", lambda: self.inner.scan(start, end))

        def _release() -> None:
            close = getattr(it, "close", None)
            if callable(close):
                self._call("close", close)

        try:
            source = self._call("scan", iter, it)
        except StoreError:
            _release()
            raise

        def _entries() -> Iterator[Entry]:
            while True:
                try:
                    key, value = next(source)
                except StopIteration:
                    return
                except StoreError:
                    raise
                except Exception as e:
                    raise StoreError.wrap("scan", e, start=start, end=end) from e
                yield str(key), bytes(value)

        return RangeIterator(_entries(), on_close=_release)

    def close(self) -> None:
        self._call("close", lambda: self.inner.close())


def guarded(store: KVStore) -> KVStore:
    return store if isinstance(store, GuardedStore) else GuardedStore(store)


def key_fits(key: object, *, max_bytes: int) -> bool:
    """True when `key` could have been written under the key cap."""
    return isinstance(key, str) and 0 < len(key.encode("utf-8")) <= max_bytes


def check_key(key: str, *, max_bytes: int) -> None:
    if not isinstance(key, str):
        raise StoreError("store key must be str", context={"type": type(key).__name__})
    if not key:
        raise StoreError("store key must be non-empty")
    if len(key.encode("utf-8")) > max_bytes:
        raise StoreError(f"store key too long (>{max_bytes} bytes)", context={"key": key})


def check_value(value: bytes, *, max_bytes: int) -> None:
    if not isinstance(value, (bytes, bytearray)):
        raise StoreError("store value must be bytes", context={"type": type(value).__name__})
    if len(value) > max_bytes:
        raise StoreError(f"store value too large (>{max_bytes} bytes)")


__all__ = [
    "KVStore",
    "RangeIterator",
    "GuardedStore",
    "Entry",
    "guarded",
    "key_fits",
    "check_key",
    "check_value",
]
