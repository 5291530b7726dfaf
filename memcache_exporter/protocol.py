"""Memcached text protocol: errors, items, command formatting and reply parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import BinaryIO, Iterator

DEFAULT_TIMEOUT = 0.5
DEFAULT_MAX_IDLE_CONNS = 2
MAX_KEY_LENGTH = 250

CRLF = b"\r\n"
RESULT_OK = b"OK\r\n"
RESULT_STORED = b"STORED\r\n"
RESULT_NOT_STORED = b"NOT_STORED\r\n"
RESULT_EXISTS = b"EXISTS\r\n"
RESULT_NOT_FOUND = b"NOT_FOUND\r\n"
RESULT_DELETED = b"DELETED\r\n"
RESULT_END = b"END\r\n"
RESULT_TOUCHED = b"TOUCHED\r\n"
RESULT_CLIENT_ERROR_PREFIX = b"CLIENT_ERROR "
VERSION_PREFIX = b"VERSION"

_AUTH_FAILURES = frozenset(
    {
        b"CLIENT_ERROR unauthenticated\r\n",
        b"CLIENT_ERROR authentication failure\r\n",
        b"CLIENT_ERROR bad command line format\r\n",
        b"CLIENT_ERROR bad command line format termination\r\n",
        b"CLIENT_ERROR bad authentication token format\r\n",
    }
)

_UINT64_LIMIT = 1 << 64
_DIGITS = re.compile(rb"[0-9]+")


class MemcacheError(Exception):
    """Base class of all memcache errors."""


class CacheMiss(MemcacheError):
    def __init__(self, message: str = "memcache: cache miss") -> None:
        super().__init__(message)


class CASConflict(MemcacheError):
    def __init__(self, message: str = "memcache: compare-and-swap conflict") -> None:
        super().__init__(message)


class NotStored(MemcacheError):
    def __init__(self, message: str = "memcache: item not stored") -> None:
        super().__init__(message)


class ServerError(MemcacheError):
    def __init__(self, message: str = "memcache: server error") -> None:
        super().__init__(message)


class NoStats(MemcacheError):
    def __init__(self, message: str = "memcache: no statistics available") -> None:
        super().__init__(message)


class MalformedKey(MemcacheError):
    def __init__(
        self,
        message: str = "malformed: key is too long or contains invalid characters",
    ) -> None:
        super().__init__(message)


class NotAuthenticated(MemcacheError):
    def __init__(self, message: str = "memcache: Client Authentication Failed") -> None:
        super().__init__(message)


class ConnectTimeoutError(MemcacheError):
    """Connecting to a server took too long."""

    def __init__(self, addr: object) -> None:
        self.addr = addr
        super().__init__(f"memcache: connect timeout to {addr}")


class UnexpectedResponse(MemcacheError):
    """The server answered with a line the protocol does not allow here."""


@dataclass
class Item:
    """An item got from or stored in a memcached server."""

    key: str
    value: bytes = b""
    flags: int = 0
    expiration: int = 0
    cas_id: int = 0


def _key_bytes(key: str | bytes) -> bytes:
    return key.encode("utf-8") if isinstance(key, str) else bytes(key)


def _show(line: bytes) -> str:
    return repr(line.decode("utf-8", errors="replace"))


def is_resumable(error: BaseException) -> bool:
    """True if error is only a protocol-level cache error and the connection stays usable."""
    return isinstance(error, (CacheMiss, CASConflict, NotStored, MalformedKey))


def legal_key(key: str | bytes) -> bool:
    """Keys are at most 250 bytes with no whitespace or control characters."""
    data = _key_bytes(key)
    if len(data) > MAX_KEY_LENGTH:
        return False
    return all(byte > 0x20 and byte != 0x7F for byte in data)


def _parse_uint(field: bytes, limit: int) -> int:
    if not _DIGITS.fullmatch(field):
        raise ValueError(field)
    value = int(field)
    if value >= limit:
        raise ValueError(field)
    return value


def scan_get_response_line(line: bytes) -> tuple[Item, int]:
    """Parse a VALUE header line; return the item without its value, and the value size."""
    error = UnexpectedResponse(f"memcache: unexpected line in get response: {_show(line)}")
    expected = 4 if line.count(b" ") == 3 else 5
    if not line.endswith(CRLF):
        raise error
    parts = line[:-2].split(b" ")
    if len(parts) != expected or parts[0] != b"VALUE" or not parts[1]:
        raise error
    try:
        flags = _parse_uint(parts[2], 1 << 32)
        size = _parse_uint(parts[3], _UINT64_LIMIT)
        cas_id = _parse_uint(parts[4], _UINT64_LIMIT) if expected == 5 else 0
    except ValueError:
        raise error from None
    key = parts[1].decode("utf-8", errors="surrogateescape")
    return Item(key=key, flags=flags, cas_id=cas_id), size


def _read_line(reader: BinaryIO) -> bytes:
    line = reader.readline()
    if not line.endswith(b"\n"):
        raise EOFError("memcache: unexpected end of stream")
    return line


def parse_get_response(reader: BinaryIO) -> Iterator[Item]:
    """Yield each item of a get response read from reader, up to END."""
    while True:
        line = _read_line(reader)
        if line == RESULT_END:
            return
        item, size = scan_get_response_line(line)
        data = reader.read(size + 2)
        if len(data) != size + 2:
            raise EOFError("memcache: unexpected end of stream")
        if not data.endswith(CRLF):
            raise UnexpectedResponse("memcache: corrupt get result read")
        item.value = data[:size]
        yield item


def format_store_command(verb: str, item: Item) -> bytes:
    """Build the full storage command for item, value and trailing CRLF included."""
    if not legal_key(item.key):
        raise MalformedKey()
    value = bytes(item.value)
    header = f"{verb} {item.key} {item.flags} {item.expiration} {len(value)}"
    if verb == "cas":
        header += f" {item.cas_id}"
    return header.encode("utf-8") + CRLF + value + CRLF


def format_auth_command(verb: str, key: str, user: str, password: str) -> bytes:
    """Build the storage command that carries the user and password token."""
    if not legal_key(key):
        raise MalformedKey()
    token = f"{user} {password}".encode("utf-8")
    header = f"{verb} {key} 0 0 {len(token)}".encode("utf-8")
    return header + CRLF + token + CRLF


def store_result(verb: str, line: bytes) -> None:
    """Check the reply to a storage command, raising on anything but STORED."""
    if line == RESULT_STORED:
        return
    if line == RESULT_NOT_STORED:
        raise NotStored()
    if line == RESULT_EXISTS:
        raise CASConflict()
    if line == RESULT_NOT_FOUND:
        raise CacheMiss()
    raise UnexpectedResponse(f"memcache: unexpected response line from {verb!r}: {_show(line)}")


def auth_result(verb: str, line: bytes) -> None:
    """Check the reply to an authentication command."""
    if line == RESULT_STORED:
        return
    if line in _AUTH_FAILURES:
        raise NotAuthenticated()
    raise UnexpectedResponse(f"memcache: unexpected response line from {verb!r}: {_show(line)}")


def expect_result(line: bytes, expect: bytes) -> None:
    """Accept OK or the expected line; raise the matching error otherwise."""
    if line in (RESULT_OK, expect):
        return
    if line == RESULT_NOT_STORED:
        raise NotStored()
    if line == RESULT_EXISTS:
        raise CASConflict()
    if line == RESULT_NOT_FOUND:
        raise CacheMiss()
    raise UnexpectedResponse(f"memcache: unexpected response line: {_show(line)}")


def incr_decr_result(line: bytes) -> int:
    """Return the new counter value from an incr or decr reply."""
    if line == RESULT_NOT_FOUND:
        raise CacheMiss()
    if line.startswith(RESULT_CLIENT_ERROR_PREFIX):
        message = line[len(RESULT_CLIENT_ERROR_PREFIX):-2].decode("utf-8", errors="replace")
        raise MemcacheError("memcache: client error: " + message)
    number = line[:-2]
    try:
        return _parse_uint(number, _UINT64_LIMIT)
    except ValueError:
        raise UnexpectedResponse(
            f"memcache: invalid counter value: {_show(number)}"
        ) from None