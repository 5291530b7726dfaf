"""Metric descriptors, constant metric samples and the text exposition format."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterable


class ValueType(Enum):
    """The kind of value a metric sample carries."""

    COUNTER = "counter"
    GAUGE = "gauge"
    UNTYPED = "untyped"


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty parts with underscores; an empty name gives ""."""
    if not name:
        return ""
    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass(frozen=True)
class Desc:
    """Describes a metric family: its full name, help text and label names."""

    fq_name: str
    help: str
    variable_labels: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "variable_labels", tuple(self.variable_labels))


@dataclass(frozen=True)
class Metric:
    """One sample of a described metric with its label values."""

    desc: Desc
    value_type: ValueType
    value: float
    label_values: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "label_values", tuple(self.label_values))
        object.__setattr__(self, "value", float(self.value))
        expected = len(self.desc.variable_labels)
        if len(self.label_values) != expected:
            raise ValueError(
                f"inconsistent label cardinality for {self.desc.fq_name!r}: "
                f"expected {expected} label values but got {len(self.label_values)}"
            )

    @property
    def labels(self) -> dict[str, str]:
        return dict(zip(self.desc.variable_labels, self.label_values))

    def _sorted_labels(self) -> tuple[tuple[str, str], ...]:
        return tuple(sorted(self.labels.items()))


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = list(digit_tuple)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    text = "".join(map(str, digits))
    point = len(digits) + exponent
    exp = point - 1
    if exp < -4 or exp >= 6:
        mantissa = text[0] + ("." + text[1:] if len(text) > 1 else "")
        return f"{sign}{mantissa}e{'+' if exp >= 0 else '-'}{abs(exp):02d}"
    if point <= 0:
        return f"{sign}0.{'0' * -point}{text}"
    if point >= len(text):
        return f"{sign}{text}{'0' * (point - len(text))}"
    return f"{sign}{text[:point]}.{text[point:]}"


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _sample_line(metric: Metric) -> str:
    name = metric.desc.fq_name
    pairs = metric._sorted_labels()
    if pairs:
        rendered = ",".join(f'{key}="{_escape_label(val)}"' for key, val in pairs)
        name = f"{name}{{{rendered}}}"
    return f"{name} {_format_float(metric.value)}"


def render_text(metrics: Iterable[Metric]) -> str:
    """Render samples in the text exposition format.

    Families are sorted by name and samples by their label values. A sample
    whose name and labels were already seen is dropped.
    """
    families: dict[str, list[Metric]] = {}
    seen: set[tuple[str, tuple[tuple[str, str], ...]]] = set()
    for metric in metrics:
        identity = (metric.desc.fq_name, metric._sorted_labels())
        if identity in seen:
            continue
        seen.add(identity)
        families.setdefault(metric.desc.fq_name, []).append(metric)

    lines: list[str] = []
    for name in sorted(families):
        samples = families[name]
        first = samples[0]
        lines.append(f"# HELP {name} {_escape_help(first.desc.help)}")
        lines.append(f"# TYPE {name} {first.value_type.value}")
        ordered = sorted(samples, key=lambda m: tuple(v for _, v in m._sorted_labels()))
        lines.extend(_sample_line(metric) for metric in ordered)
    return "".join(line + "\n" for line in lines)