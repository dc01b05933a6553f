"""Partitioned physical key layout."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

ID_SEGMENT = "id"


@dataclass(frozen=True)
class Partition:
    name: str
    value: str

    @property
    def segment(self) -> str:
        return f"{self.name}={self.value}"


def date_partitions(now: datetime | None = None) -> list[Partition]:
    """Return ``year``/``month``/``day`` partitions for the current UTC date.

    The clock is read once so the three values always agree. Month and day
    are not zero-padded.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)
    return [
        Partition("year", str(now.year)),
        Partition("month", str(now.month)),
        Partition("day", str(now.day)),
    ]


def build_partitioned_path(partitions: list[Partition]) -> str:
    return "/".join(p.segment for p in partitions)


def build_key(partitions: list[Partition], logical_id: str, prefix: str = "") -> str:
    """Build ``[prefix]name=value/.../id=<logical_id>``.

    ``prefix`` is used verbatim and is expected to be empty or end with ``/``.
    """
    segments = [p.segment for p in partitions]
    segments.append(f"{ID_SEGMENT}={logical_id}")
    return prefix + "/".join(segments)


def parse_partitioned_key(key: str) -> tuple[list[Partition], str]:
    """Split an unprefixed key back into its partitions and logical id.

    The first ``id=`` segment starts the logical id, which may itself
    contain ``/``.
    """
    marker = f"{ID_SEGMENT}="
    segments = key.split("/")
    for index, segment in enumerate(segments):
        if segment.startswith(marker):
            break
    else:
        raise ValueError(f"Key has no '{marker}' segment: {key!r}")
    partitions: list[Partition] = []
    for segment in segments[:index]:
        name, eq, value = segment.partition("=")
        if not eq:
            raise ValueError(f"Malformed partition segment {segment!r} in key {key!r}")
        partitions.append(Partition(name, value))
    logical_id = "/".join(segments[index:])[len(marker) :]
    return partitions, logical_id
