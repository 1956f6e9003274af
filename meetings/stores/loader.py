"""Seed an InMemoryStore from a JSONL file of hosts.

Each line is one host object with nested ``links`` and ``rules``::

    {"id": "h1", "name": "Ada", "timezone": "Europe/London",
     "links": [{"slug": "ada-30", "title": "Intro call"}],
     "rules": [{"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"}]}

Hosts without a ``timezone`` get ``DEFAULT_TIMEZONE``; rules without one
inherit the host's.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from meetings.config import settings
from meetings.models.availability import AvailabilityRule, RuleInput
from meetings.models.booking import BookingLink, Host

from .memory import InMemoryStore

log = logging.getLogger("meetings.stores.loader")


def rule_from_input(host: Host, rule: RuleInput) -> AvailabilityRule:
    """Materialize a submitted rule for ``host``."""
    return AvailabilityRule(
        host_id=host.id,
        day_of_week=rule.day_of_week,
        start_time=rule.start_time,
        end_time=rule.end_time,
        timezone=rule.timezone or host.timezone,
    )


def load_hosts_jsonl(path: str | Path, store: InMemoryStore | None = None) -> InMemoryStore:
    """Load every host in ``path`` into ``store`` (a new one if omitted)."""
    path = Path(path)
    store = store if store is not None else InMemoryStore()

    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path}:{lineno}: invalid JSON ({exc.msg})") from exc
        _parse_host(data, store)

    log.info("Loaded hosts from %s", path)
    return store


def _parse_host(data: dict, store: InMemoryStore) -> None:
    """Parse one raw host dict and register it with its links and rules."""
    links = data.pop("links", [])
    rules = data.pop("rules", [])
    data.setdefault("timezone", settings.default_timezone)

    host = Host(**data)
    store.add_host(host)

    for link_data in links:
        link_data.setdefault("host_id", host.id)
        store.add_link(BookingLink(**link_data))

    for rule_data in rules:
        store.add_rule(rule_from_input(host, RuleInput(**rule_data)))
