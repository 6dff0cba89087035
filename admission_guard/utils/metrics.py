"""Prometheus collectors for admission decisions.

Collectors are registered once per process; repeated lookups (for example
when tests build several engines) return the already-registered instance.
"""

from __future__ import annotations

from prometheus_client import REGISTRY, Counter, Gauge

NAMESPACE = "admission"


def _fullname(name: str, namespace: str | None) -> str:
    return f"{namespace}_{name}" if namespace else name


def _get_existing(fullname: str):
    reg = getattr(REGISTRY, "_names_to_collectors", {})
    return reg.get(fullname) if isinstance(reg, dict) else None


def safe_counter(
    name: str,
    documentation: str,
    labelnames: list[str] | None = None,
    namespace: str | None = NAMESPACE,
) -> Counter:
    # Counters register under the name without the _total suffix
    base = name[: -len("_total")] if name.endswith("_total") else name
    existing = _get_existing(_fullname(base, namespace))
    if existing is not None:
        return existing
    return Counter(name, documentation, labelnames or [], namespace=namespace or "")


def safe_gauge(
    name: str, documentation: str, namespace: str | None = NAMESPACE
) -> Gauge:
    existing = _get_existing(_fullname(name, namespace))
    if existing is not None:
        return existing
    return Gauge(name, documentation, namespace=namespace or "")


blocked_events = safe_counter(
    "blocked_events_total",
    "Admission requests denied, by kind",
    ["kind"],
)
cached_actors = safe_gauge("cached_actors", "Reputation records held in memory")
active_blocks = safe_gauge("active_blocks", "Reputation records currently blocked")
