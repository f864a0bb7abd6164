import math
import re
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Condition, Lock
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union


DEFAULT_ITEMS: Dict[str, float] = {"shoes": 50.0, "socks": 5.0}

# ASCII decimal or exponent form only; float() alone also takes "1_000" and non-ASCII digits.
PRICE_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)

_ESCAPES = {
    "\a": "\\a", "\b": "\\b", "\f": "\\f", "\n": "\\n",
    "\r": "\\r", "\t": "\\t", "\v": "\\v", "\\": "\\\\", '"': '\\"',
}


def quote(value: str) -> str:
    """Double-quote *value*, escaping non-printable characters as \\xNN, \\uNNNN or \\UNNNNNNNN."""
    out = ['"']
    for ch in value:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        elif ord(ch) < 0x80:
            out.append(f"\\x{ord(ch):02x}")
        elif ord(ch) <= 0xFFFF:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(f"\\U{ord(ch):08x}")
    out.append('"')
    return "".join(out)


@dataclass(frozen=True)
class Dollars:
    """A price. Displays as ``$`` plus two decimals, using ``format(x, ".2f")`` rounding."""

    amount: float

    def __str__(self) -> str:
        return f"${self.amount:.2f}"


class StoreError(Exception):
    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidPrice(StoreError):
    status = 400

    def __init__(self, text: str) -> None:
        super().__init__(f"invalid price: {quote(text)}")
        self.text = text


class NotFound(StoreError):
    status = 404

    def __init__(self, name: str) -> None:
        super().__init__(f"no such item: {quote(name)}")
        self.name = name


class AlreadyExists(StoreError):
    status = 409

    def __init__(self, name: str) -> None:
        super().__init__(f"item already exists: {quote(name)}")
        self.name = name


def parse_price(text: str) -> Dollars:
    if not PRICE_RE.fullmatch(text):
        raise InvalidPrice(text)
    amount = float(text)
    # overflow, e.g. "1e999"
    if not math.isfinite(amount):
        raise InvalidPrice(text)
    return Dollars(amount)


class ReadWriteLock:
    """
    Many readers or one writer. A waiting writer blocks new readers,
    so a steady stream of reads cannot starve mutations.
    """

    def __init__(self) -> None:
        self._cond = Condition(Lock())
        self._readers = 0
        self._writing = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writing or self._readers:
                    self._cond.wait()
            except BaseException:
                # Readers parked behind this writer must re-check.
                self._writers_waiting -= 1
                self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writing = True

    def release_write(self) -> None:
        with self._cond:
            self._writing = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class ItemStore:
    """
    Item name -> price, safe to share between request threads.

    Every operation holds the lock across its whole check-then-act span.
    Prices are parsed before the exclusive lock is taken.
    """

    def __init__(self, items: Optional[Mapping[str, Union[float, Dollars]]] = None) -> None:
        seed = DEFAULT_ITEMS if items is None else items
        self._lock = ReadWriteLock()
        self._items: Dict[str, Dollars] = {
            name: price if isinstance(price, Dollars) else Dollars(float(price))
            for name, price in seed.items()
        }

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._items)

    def __contains__(self, name: object) -> bool:
        with self._lock.read_locked():
            return name in self._items

    def list_items(self) -> List[Tuple[str, Dollars]]:
        with self._lock.read_locked():
            snapshot = list(self._items.items())
        return sorted(snapshot, key=lambda entry: entry[0])

    def get(self, name: str) -> Dollars:
        with self._lock.read_locked():
            try:
                return self._items[name]
            except KeyError:
                raise NotFound(name) from None

    def create(self, name: str, price_text: str) -> Tuple[str, Dollars]:
        price = parse_price(price_text)
        with self._lock.write_locked():
            if name in self._items:
                raise AlreadyExists(name)
            self._items[name] = price
        return name, price

    def update(self, name: str, price_text: str) -> Tuple[str, Dollars]:
        price = parse_price(price_text)
        with self._lock.write_locked():
            if name not in self._items:
                raise NotFound(name)
            self._items[name] = price
        return name, price

    def delete(self, name: str) -> str:
        with self._lock.write_locked():
            if name not in self._items:
                raise NotFound(name)
            del self._items[name]
        return name
