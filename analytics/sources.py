"""Source breakdown of goal events by normalized source label."""
from collections import Counter
from typing import Dict, Iterable, List, Optional

from analytics.config import SourceConfig, config
from analytics.models import GoalEvent, RecordType, SourceBreakdownEntry


def normalize_source(raw: Optional[str], sources: SourceConfig = config.sources) -> str:
    """
    Map a raw source tag to its display label.

    Empty or missing tags become the default label ("Direct"); known tags are
    matched case-insensitively; anything else is returned unchanged.
    """
    if raw is None:
        return sources.default_label
    text = str(raw).strip()
    if not text:
        return sources.default_label
    return sources.get_label(text)


def breakdown_by_source(events: Iterable, sources: SourceConfig = config.sources) -> List[SourceBreakdownEntry]:
    """
    Count events per normalized source, largest first.

    Accepts any objects with a `source` attribute. Ties keep first-seen order.
    """
    counts: Counter = Counter()
    total = 0
    for event in events:
        counts[normalize_source(event.source, sources)] += 1
        total += 1

    entries = [
        SourceBreakdownEntry(
            source=source,
            count=count,
            percentage=(count / total) * 100 if total > 0 else 0.0,
        )
        for source, count in counts.items()
    ]
    return sorted(entries, key=lambda entry: -entry.count)


def breakdown_by_kind(
    events: Iterable[GoalEvent],
    sources: SourceConfig = config.sources,
) -> Dict[RecordType, List[SourceBreakdownEntry]]:
    """One source breakdown per record type (sms, user, order)."""
    grouped: Dict[RecordType, List[GoalEvent]] = {kind: [] for kind in RecordType}
    for event in events:
        grouped[event.record_type].append(event)
    return {kind: breakdown_by_source(kind_events, sources) for kind, kind_events in grouped.items()}
