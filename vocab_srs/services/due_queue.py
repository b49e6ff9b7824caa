"""Due queue and next-item selection."""

from __future__ import annotations

import random
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from vocab_srs.schemas.srs.srs_schema import SRSRecord
from vocab_srs.utils.date_utils import ensure_aware

REASON_DUE = "due"
REASON_NEW = "new"
REASON_PRACTICE = "practice"
REASON_EMPTY = "empty"


def compute_due_items(records: Iterable[SRSRecord], now: datetime) -> List[str]:
    """Return the ids of records due at ``now``, most overdue first.

    Ties on ``next_due_at`` go to the least repeated item, then to the
    item id so two calls on the same input always agree.
    """
    now = ensure_aware(now)
    due = [record for record in records if record.is_due(now)]
    due.sort(key=lambda record: (record.next_due_at, record.repetition_count, record.item_id))
    return [record.item_id for record in due]


def _practice_weight(record: SRSRecord) -> float:
    # Hard items (low easiness) and young items come back more often.
    return (1.0 / record.easiness_factor) * (1.0 / (1 + max(record.repetition_count, 0)))


def choose_next_item(
    records: Sequence[SRSRecord],
    candidate_ids: Sequence[str],
    now: datetime,
    rng: Optional[random.Random] = None,
) -> tuple[Optional[str], str]:
    """Pick the next item to present and the reason it was picked."""

    due = compute_due_items(records, now)
    if due:
        return due[0], REASON_DUE

    reviewed = {record.item_id: record for record in records if record.is_reviewed}
    for item_id in candidate_ids:
        if str(item_id) not in reviewed:
            return str(item_id), REASON_NEW

    if not reviewed:
        return None, REASON_EMPTY

    rng = rng or random.Random()
    pool = sorted(reviewed.values(), key=lambda record: record.item_id)
    picked = rng.choices(pool, weights=[_practice_weight(record) for record in pool], k=1)[0]
    return picked.item_id, REASON_PRACTICE


def select_next_item(
    records: Sequence[SRSRecord],
    candidate_ids: Sequence[str],
    now: datetime,
    rng: Optional[random.Random] = None,
) -> Optional[str]:
    item_id, _ = choose_next_item(records, candidate_ids, now, rng)
    return item_id
