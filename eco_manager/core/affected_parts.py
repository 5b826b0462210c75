"""
AffectedPartsResolver — resolves an ECO's affected part references.

Each IPN is looked up independently against a part-lookup callable. The
output has exactly one outcome per input reference, in input order:

    ["IPN-001", "IPN-999"]
      -> [ResolvedPart("IPN-001", "10k Resistor"),
          UnresolvedPart("IPN-999", "Part not found in system")]

A failed lookup only marks its own reference unresolved; it never aborts
the others and is never retried here. Lookups run concurrently on a
bounded thread pool and are re-paired with their index before returning.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence, Union

from eco_manager.core.exceptions import PartNotFound
from eco_manager.core.record_store import PartMetadata

logger = logging.getLogger(__name__)

NOT_FOUND_REASON = "Part not found in system"


@dataclass(frozen=True)
class ResolvedPart:
    ipn: str
    description: str
    is_resolved = True


@dataclass(frozen=True)
class UnresolvedPart:
    ipn: str
    reason: str
    is_resolved = False


PartResolution = Union[ResolvedPart, UnresolvedPart]
PartLookup = Callable[[str], PartMetadata]


class AffectedPartsResolver:
    """
    Turns an ordered sequence of IPNs into an ordered sequence of
    ResolvedPart / UnresolvedPart outcomes.
    """

    def __init__(self, lookup: PartLookup, max_workers: int = 8) -> None:
        self._lookup = lookup
        self._max_workers = max(1, max_workers)

    def resolve(self, ipns: Sequence[str]) -> list[PartResolution]:
        if not ipns:
            return []
        workers = min(self._max_workers, len(ipns))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="part-lookup") as pool:
            # map() yields results in submission order, which re-pairs
            # every outcome with its originating index.
            return list(pool.map(self._resolve_one, ipns))

    def _resolve_one(self, ipn: str) -> PartResolution:
        try:
            part = self._lookup(ipn)
        except PartNotFound as exc:
            return UnresolvedPart(ipn=ipn, reason=exc.reason or NOT_FOUND_REASON)
        except Exception as exc:
            logger.warning("Lookup of affected part %s failed: %s", ipn, exc)
            return UnresolvedPart(ipn=ipn, reason=f"Lookup failed: {exc}")
        return ResolvedPart(ipn=ipn, description=part.description)


def parse_affected_ipns(raw: str | Iterable[str] | None) -> list[str]:
    """
    Normalize stored affected-part references into an ordered IPN list.

    Accepts a JSON array ('["IPN-001", "IPN-002"]'), a comma-separated
    string ('IPN-001, IPN-002') or an already-split iterable. Entries are
    trimmed and blanks dropped; order and duplicates are preserved.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                items = json.loads(text)
            except json.JSONDecodeError:
                logger.warning("Malformed affected IPN list %r; parsing as comma list", text)
                items = text.strip("[]").replace('"', "").split(",")
        else:
            items = text.split(",")
    else:
        items = list(raw)
    return [str(item).strip() for item in items if str(item).strip()]


def format_affected_ipns(ipns: Iterable[str]) -> str:
    """Serialize an IPN list for storage (JSON array; empty list -> '')."""
    cleaned = parse_affected_ipns(list(ipns))
    return json.dumps(cleaned) if cleaned else ""
