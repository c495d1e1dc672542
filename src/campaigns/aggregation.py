"""Campaign progress aggregation.

Merges stored targets (participants) with actuals reported by the external
sales API, then ranks stores and employees inside their leaderboard groups.

Every function here is a pure function of its arguments: no ORM access, no
settings, no clock. Participants and sales records are duck-typed:

- a participant exposes ``store_code``, ``group_id``, ``target_quantity``
  and ``target_value``;
- a sales record exposes ``store_code``, ``net_quantity`` and ``net_value``
  (net = gross - returned, never clamped).

Missing data degrades to zero instead of raising.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

QUANTITY = "QUANTITY"
VALUE = "VALUE"

AHEAD = "AHEAD"
ON_PACE = "ON_PACE"
AT_RISK = "AT_RISK"
BEHIND = "BEHIND"

ZERO = Decimal("0")
HUNDRED = Decimal("100")
AT_RISK_RATIO = Decimal("0.8")


# ────────────────────────────────────────────────────────────
# Result types
# ────────────────────────────────────────────────────────────

@dataclass
class RankedStore:
    participant: Any
    store_code: str
    group_id: str
    target: Decimal
    realized: Decimal
    percent: Decimal
    net_quantity: Decimal
    net_value: Decimal
    has_sales_record: bool
    rank: int = 0
    headcount: int | None = None
    average_per_employee: Decimal | None = None


@dataclass
class RankedEmployee:
    record: Any
    participant: Any
    group_id: str
    realized: Decimal
    rank: int = 0


@dataclass
class RankingGroup:
    """One leaderboard bucket.

    ``total_target`` and ``percent`` are ``None`` for employee groups, which
    carry no target.
    """

    group_id: str
    entries: list = field(default_factory=list)
    total_realized: Decimal = ZERO
    total_target: Decimal | None = None
    percent: Decimal | None = None


@dataclass(frozen=True)
class CampaignProgress:
    realized: Decimal
    target: Decimal
    percent_realized: Decimal
    percent_time: Decimal
    elapsed_days: int
    total_days: int
    status: str


# ────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────

def to_decimal(value) -> Decimal:
    """Coerce numbers and numeric strings to Decimal; anything else is 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        value = repr(value)
    text = str(value).strip()
    if "," in text and "." not in text:
        text = text.replace(",", ".")
    try:
        result = Decimal(text)
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def normalize_store_code(value) -> str:
    """Canonical form of a store code: ``" 012 "``, ``12`` and ``"12"`` match."""
    if value is None:
        return ""
    text = str(value).strip()
    if text.isdigit():
        return str(int(text))
    return text


def _group_key(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def percent_of(realized, target) -> Decimal:
    """realized / target x 100, or 0 when there is no positive target."""
    realized = to_decimal(realized)
    target = to_decimal(target)
    if target > 0:
        return realized / target * HUNDRED
    return ZERO


def realized_for(goal_type: str, net_quantity: Decimal, net_value: Decimal) -> Decimal:
    return net_quantity if goal_type == QUANTITY else net_value


def target_for(goal_type: str, participant) -> Decimal:
    if goal_type == QUANTITY:
        return to_decimal(getattr(participant, "target_quantity", None))
    return to_decimal(getattr(participant, "target_value", None))


def index_by_store_code(records: Iterable) -> dict:
    """Map normalized store code -> first record carrying it."""
    index = {}
    for record in records or ():
        code = normalize_store_code(getattr(record, "store_code", None))
        if code and code not in index:
            index[code] = record
    return index


# ────────────────────────────────────────────────────────────
# Store ranking
# ────────────────────────────────────────────────────────────

def compute_store_ranking(
    participants: Iterable,
    external_records: Iterable,
    goal_type: str,
    headcounts: Mapping[str, int] | None = None,
) -> list[RankingGroup]:
    """Rank participating stores by percent of target inside each group.

    ``headcounts`` (normalized store code -> staff count) is optional; when
    given, each entry also gets its average realized per employee.
    """
    records = index_by_store_code(external_records)
    buckets: dict[str, list[RankedStore]] = {}

    for participant in participants or ():
        code = normalize_store_code(participant.store_code)
        record = records.get(code)
        net_quantity = to_decimal(record.net_quantity) if record is not None else ZERO
        net_value = to_decimal(record.net_value) if record is not None else ZERO
        realized = realized_for(goal_type, net_quantity, net_value)
        target = target_for(goal_type, participant)

        entry = RankedStore(
            participant=participant,
            store_code=code,
            group_id=_group_key(participant.group_id),
            target=target,
            realized=realized,
            percent=percent_of(realized, target),
            net_quantity=net_quantity,
            net_value=net_value,
            has_sales_record=record is not None,
        )
        if headcounts is not None:
            entry.headcount = int(headcounts.get(code, 0) or 0)
            entry.average_per_employee = (
                realized / entry.headcount if entry.headcount > 0 else ZERO
            )
        buckets.setdefault(entry.group_id, []).append(entry)

    groups = []
    for group_id, members in buckets.items():
        # sorted() is stable with reverse=True: ties keep input order.
        ranked = sorted(members, key=lambda e: e.percent, reverse=True)
        for rank, entry in enumerate(ranked, start=1):
            entry.rank = rank
        total_realized = sum((e.realized for e in ranked), ZERO)
        total_target = sum((e.target for e in ranked), ZERO)
        groups.append(
            RankingGroup(
                group_id=group_id,
                entries=ranked,
                total_realized=total_realized,
                total_target=total_target,
                percent=percent_of(total_realized, total_target),
            )
        )

    return sorted(groups, key=lambda g: g.percent, reverse=True)


# ────────────────────────────────────────────────────────────
# Employee ranking
# ────────────────────────────────────────────────────────────

def compute_employee_ranking(
    participants: Iterable,
    employee_records: Iterable,
    goal_type: str,
) -> list[RankingGroup]:
    """Rank employees of participating stores by net realized inside each group.

    Rows from stores outside the campaign, and rows whose net realized is
    zero or negative, are dropped.
    """
    by_code = {}
    for participant in participants or ():
        code = normalize_store_code(participant.store_code)
        if code and code not in by_code:
            by_code[code] = participant

    buckets: dict[str, list[RankedEmployee]] = {}
    for record in employee_records or ():
        participant = by_code.get(normalize_store_code(record.store_code))
        if participant is None:
            continue
        realized = realized_for(
            goal_type,
            to_decimal(record.net_quantity),
            to_decimal(record.net_value),
        )
        if realized <= 0:
            continue
        group_id = _group_key(participant.group_id)
        buckets.setdefault(group_id, []).append(
            RankedEmployee(
                record=record,
                participant=participant,
                group_id=group_id,
                realized=realized,
            )
        )

    groups = []
    for group_id, members in buckets.items():
        ranked = sorted(members, key=lambda e: e.realized, reverse=True)
        for rank, entry in enumerate(ranked, start=1):
            entry.rank = rank
        groups.append(
            RankingGroup(
                group_id=group_id,
                entries=ranked,
                total_realized=sum((e.realized for e in ranked), ZERO),
            )
        )

    return sorted(groups, key=lambda g: g.total_realized, reverse=True)


# ────────────────────────────────────────────────────────────
# Campaign progress bar
# ────────────────────────────────────────────────────────────

def _as_datetime(value, tzinfo=None) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=tzinfo)


def _days_between(start, end) -> float:
    if not isinstance(start, datetime) and not isinstance(end, datetime):
        return float((end - start).days)
    tzinfo = getattr(start, "tzinfo", None) or getattr(end, "tzinfo", None)
    delta = _as_datetime(end, tzinfo) - _as_datetime(start, tzinfo)
    return delta.total_seconds() / 86400


def classify_progress(percent_realized, percent_time) -> str:
    percent_realized = to_decimal(percent_realized)
    percent_time = to_decimal(percent_time)
    if percent_realized >= HUNDRED:
        return AHEAD
    if percent_realized >= percent_time:
        return ON_PACE
    if percent_realized >= percent_time * AT_RISK_RATIO:
        return AT_RISK
    return BEHIND


def compute_campaign_progress(
    realized_total,
    target_total,
    start_date: date | datetime,
    end_date: date | datetime,
    today: date | datetime,
) -> CampaignProgress:
    """Compare the share of target reached with the share of time elapsed.

    Both endpoints count as campaign days.
    """
    total_days = math.ceil(_days_between(start_date, end_date)) + 1
    elapsed_days = math.ceil(_days_between(start_date, today)) + 1
    elapsed_days = max(0, min(elapsed_days, total_days))

    if total_days > 0:
        percent_time = Decimal(elapsed_days) / Decimal(total_days) * HUNDRED
    else:
        percent_time = ZERO

    realized = to_decimal(realized_total)
    target = to_decimal(target_total)
    percent_realized = percent_of(realized, target)

    return CampaignProgress(
        realized=realized,
        target=target,
        percent_realized=percent_realized,
        percent_time=percent_time,
        elapsed_days=elapsed_days,
        total_days=total_days,
        status=classify_progress(percent_realized, percent_time),
    )
