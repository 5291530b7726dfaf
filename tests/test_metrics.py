import pytest

from memcache_exporter.metrics import (
    Desc,
    Metric,
    ValueType,
    build_fq_name,
    render_text,
)

UP = Desc("memcached_up", "Could the memcached server be reached.", ())
SLAB_COMMANDS = Desc(
    "memcached_slab_commands_total",
    "Total number of all requests broken down by command (get, set, etc.) and status per slab.",
    ("slab", "command", "status"),
)
CURRENT_BYTES = Desc(
    "memcached_current_bytes", "Current number of bytes used to store items.", ()
)
CHUNKS = Desc(
    "memcached_slab_current_chunks",
    "Number of chunks allocated to this slab class.",
    ["slab"],
)


def test_build_fq_name_joins_parts():
    assert build_fq_name("memcached", "", "up") == "memcached_up"
    assert build_fq_name("memcached", "slab", "current_items") == "memcached_slab_current_items"
    assert build_fq_name("memcached", "lru_crawler", "enabled") == "memcached_lru_crawler_enabled"


def test_build_fq_name_empty_name():
    assert build_fq_name("memcached", "slab", "") == ""


def test_render_single_gauge():
    text = render_text([Metric(UP, ValueType.GAUGE, 1)])
    assert text == (
        "# HELP memcached_up Could the memcached server be reached.\n"
        "# TYPE memcached_up gauge\n"
        "memcached_up 1\n"
    )


def test_render_labels_sorted_by_name():
    text = render_text([Metric(SLAB_COMMANDS, ValueType.COUNTER, 2, ("1", "set", "hit"))])
    assert 'memcached_slab_commands_total{command="set",slab="1",status="hit"} 2' in text
    assert "# TYPE memcached_slab_commands_total counter" in text


def test_render_integral_values():
    text = render_text(
        [
            Metric(CURRENT_BYTES, ValueType.GAUGE, 262),
            Metric(CHUNKS, ValueType.GAUGE, 10922, ("1",)),
            Metric(CHUNKS, ValueType.GAUGE, 4369, ("5",)),
        ]
    )
    assert "memcached_current_bytes 262\n" in text
    assert 'memcached_slab_current_chunks{slab="1"} 10922\n' in text
    assert 'memcached_slab_current_chunks{slab="5"} 4369\n' in text


def test_render_float_formats():
    text = render_text(
        [
            Metric(Desc("a", "a", ()), ValueType.GAUGE, 67108864),
            Metric(Desc("b", "b", ()), ValueType.GAUGE, float("inf")),
            Metric(Desc("c", "c", ()), ValueType.GAUGE, float("nan")),
            Metric(Desc("d", "d", ()), ValueType.GAUGE, 3.5),
            Metric(Desc("e", "e", ()), ValueType.GAUGE, 0.0),
        ]
    )
    lines = [line for line in text.splitlines() if not line.startswith("#")]
    assert lines == ["a 6.7108864e+07", "b +Inf", "c NaN", "d 3.5", "e 0"]


def test_families_sorted_by_name():
    text = render_text(
        [Metric(UP, ValueType.GAUGE, 1), Metric(CURRENT_BYTES, ValueType.GAUGE, 262)]
    )
    assert text.index("memcached_current_bytes 262") < text.index("memcached_up 1")


def test_samples_sorted_by_label_values():
    text = render_text(
        [
            Metric(CHUNKS, ValueType.GAUGE, 4369, ("5",)),
            Metric(CHUNKS, ValueType.GAUGE, 10922, ("1",)),
        ]
    )
    assert text.index('slab="1"') < text.index('slab="5"')
    assert text.count("# HELP memcached_slab_current_chunks") == 1


def test_duplicate_samples_dropped():
    text = render_text(
        [
            Metric(CHUNKS, ValueType.GAUGE, 1, ("1",)),
            Metric(CHUNKS, ValueType.GAUGE, 2, ("1",)),
        ]
    )
    samples = [line for line in text.splitlines() if not line.startswith("#")]
    assert samples == ['memcached_slab_current_chunks{slab="1"} 1']


def test_label_value_escaping():
    desc = Desc("memcached_version", "The version.", ("version",))
    text = render_text([Metric(desc, ValueType.GAUGE, 1, ('a"b\\c\nd',))])
    assert 'memcached_version{version="a\\"b\\\\c\\nd"} 1' in text


def test_help_escaping():
    desc = Desc("x_total", "line one\nback\\slash", ())
    text = render_text([Metric(desc, ValueType.COUNTER, 0)])
    assert text.splitlines()[0] == "# HELP x_total line one\\nback\\\\slash"


def test_empty_input_renders_nothing():
    assert render_text([]) == ""


def test_inconsistent_label_cardinality():
    with pytest.raises(ValueError):
        Metric(SLAB_COMMANDS, ValueType.COUNTER, 1, ("1", "set"))
    with pytest.raises(ValueError):
        Metric(UP, ValueType.GAUGE, 1, ("extra",))


def test_metric_labels_mapping():
    metric = Metric(SLAB_COMMANDS, ValueType.COUNTER, 1, ["5", "cas", "hit"])
    assert metric.labels == {"slab": "5", "command": "cas", "status": "hit"}
    assert metric.label_values == ("5", "cas", "hit")
    assert metric.value == 1.0


def test_desc_labels_stored_as_tuple():
    assert CHUNKS.variable_labels == ("slab",)
    assert Desc("n", "h", ["slab"]) == CHUNKS.__class__("n", "h", ("slab",))