# memcache-exporter

Building blocks for working with memcached and turning its statistics into
Prometheus metrics. The package uses only the standard library.

It has four modules:

- `memcache_exporter.protocol` holds the memcached text protocol. It builds commands, parses replies, defines the `Item` dataclass and the error classes.
- `memcache_exporter.selector` picks the server that owns a key, using CRC-32 over a server list.
- `memcache_exporter.values` reads numbers, booleans and timevals out of `stats` maps.
- `memcache_exporter.metrics` defines metric descriptors and samples, and renders them in the Prometheus text exposition format.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Protocol

`Item` has the fields `key`, `value` (bytes), `flags`, `expiration` and `cas_id`.

The module offers these helpers:

- `legal_key(key)` checks that a key is at most 250 bytes long. It must also contain no whitespace or control characters.
- `format_store_command(verb, item)` builds a full storage command for `set`, `add`, `replace`, `append`, `prepend` or `cas`. The `cas` form carries `item.cas_id`. An illegal key raises `MalformedKey`.
- `format_auth_command(verb, key, user, password)` builds the storage command that carries a `user password` token.
- `parse_get_response(reader)` yields an `Item` for each `VALUE` block read from a binary stream, up to `END`.
- `scan_get_response_line(line)` parses a single `VALUE` header line. It returns the item and the size of its value.
- `store_result(verb, line)`, `auth_result(verb, line)`, `expect_result(line, expect)` and `incr_decr_result(line)` check a reply line. They raise the matching error. `incr_decr_result` returns the new counter value.
- `is_resumable(error)` tells whether an error leaves a connection usable. This is true of `CacheMiss`, `CASConflict`, `NotStored` and `MalformedKey`.

```python
import io
from memcache_exporter.protocol import Item, format_store_command, parse_get_response

format_store_command("set", Item(key="foo", value=b"bar"))
# b'set foo 0 0 3\r\nbar\r\n'

reply = io.BytesIO(b"VALUE foo 0 3 7\r\nbar\r\nEND\r\n")
list(parse_get_response(reply))
# [Item(key='foo', value=b'bar', flags=0, expiration=0, cas_id=7)]
```

All errors derive from `MemcacheError`. They are:

- `CacheMiss`
- `CASConflict`
- `NotStored`
- `ServerError`
- `NoStats`
- `MalformedKey`
- `NotAuthenticated`
- `ConnectTimeoutError`
- `UnexpectedResponse`

A premature end of stream raises `EOFError`.

## Server selection

`ServerList(servers)` resolves each server name.

- A name containing `/` is taken as a Unix socket path.
- Any other name must be `host:port`. It is resolved to a TCP address, with IPv4 preferred.

The methods are:

- `set_servers(*servers)` replaces the list. If any name fails to resolve, nothing changes.
- `pick_server(key)` returns a `ServerAddress` (`network`, `address`). It raises `NoServers` when the list is empty.
- `each(fn)` calls `fn` for every server in order.

A server listed several times receives a proportional share of keys.

## Reading statistics

The readers in `memcache_exporter.values` are:

- `parse(stats, key)` returns a float.
- `parse_bool(stats, key)` maps `yes`/`no` to `1.0`/`0.0`.
- `parse_timeval(stats, key)` reads `seconds.microseconds`, so `"3.5"` gives `3.000005`.
- `sum_values(stats, *keys)` adds up several keys.

A missing key raises `KeyNotFound`. A malformed value raises `ValueParseError`.

## Metrics

The metric types are:

- `build_fq_name(namespace, subsystem, name)` joins the non-empty parts with underscores.
- `Desc(fq_name, help, variable_labels)` describes a metric family.
- `Metric(desc, value_type, value, label_values)` is one sample. `value_type` is a `ValueType`: `COUNTER`, `GAUGE` or `UNTYPED`. A wrong number of label values raises `ValueError`.

`render_text(metrics)` writes the exposition text. Families are sorted by name and samples by label values. Duplicate samples are dropped.

```python
from memcache_exporter.metrics import Desc, Metric, ValueType, build_fq_name, render_text

up = Desc(build_fq_name("memcached", "", "up"), "Could the memcached server be reached.")
print(render_text([Metric(up, ValueType.GAUGE, 1)]), end="")
# # HELP memcached_up Could the memcached server be reached.
# # TYPE memcached_up gauge
# memcached_up 1
```

## What this package does not do

The package has no network client. It does not open connections or send commands to a memcached server. It only builds the bytes and interprets the replies.

It also has no ready-made set of memcached metric descriptors. It has no collector that turns a server's `stats` output into metrics.

It has no HTTP server, `/metrics` endpoint or command-line program. Those have to be built on top of the pieces above.