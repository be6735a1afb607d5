"""Day allocation across one or many destinations.

Produces the ordered day slots of a trip (without activities). Three modes:

- single: one slot per day, no destination tagging.
- multi_fixed: each destination gets exactly its planned days; the planned
  days must add up to the trip length, no travel days are inserted.
- multi_flexible: one travel day between consecutive destinations, the
  remaining days split as evenly as possible with a minimum stay per
  destination; shortfall is padded with extended-stay days at the last
  destination, overshoot is truncated.
"""

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import date, timedelta

from planora.models.common import TripType
from planora.models.trip import DaySlot, Destination

logger = logging.getLogger(__name__)

MIN_STAY_DAYS = 2


class AllocationError(ValueError):
    """Trip days cannot be allocated across the given destinations."""


def allocate_days(
    *,
    total_days: int,
    trip_type: TripType,
    start_date: date,
    destinations: Sequence[Destination] = (),
    min_stay_days: int = MIN_STAY_DAYS,
) -> list[DaySlot]:
    """Allocate trip days to destinations.

    Args:
        total_days: Inclusive trip length in days
        trip_type: Allocation mode
        start_date: Date of day 1
        destinations: Route stops in visiting order (ignored for single trips)
        min_stay_days: Minimum days per destination in flexible mode

    Returns:
        Exactly total_days slots numbered 1..total_days

    Raises:
        AllocationError: If the input cannot produce a valid allocation
    """
    if total_days < 1:
        raise AllocationError(f"trip must last at least one day, got {total_days}")

    if trip_type is TripType.single:
        slots = [_slot(start_date, n) for n in range(1, total_days + 1)]
    elif trip_type is TripType.multi_fixed:
        slots = _allocate_fixed(total_days, start_date, destinations)
    elif trip_type is TripType.multi_flexible:
        slots = _allocate_flexible(total_days, start_date, destinations, min_stay_days)
    else:
        raise AllocationError(f"unsupported trip type {trip_type!r}")

    logger.info(
        f"Allocated {len(slots)} days for {trip_type.value} trip",
        extra={"structured": {"trip_type": trip_type.value, **allocation_summary(slots)}},
    )
    return slots


def allocation_summary(slots: Sequence[DaySlot]) -> dict[str, int]:
    """Count days per destination, plus travel and extended-stay days."""
    counts: Counter[str] = Counter()
    for slot in slots:
        if slot.is_travel_day:
            counts["travel"] += 1
            continue
        if slot.is_extended_stay:
            counts["extended_stay"] += 1
        counts[slot.destination_name or "trip"] += 1
    return dict(counts)


def _slot(start_date: date, day_number: int, **fields: object) -> DaySlot:
    return DaySlot(
        day_number=day_number,
        date=start_date + timedelta(days=day_number - 1),
        **fields,  # type: ignore[arg-type]
    )


def _require_destinations(destinations: Sequence[Destination], trip_type: TripType) -> None:
    if not destinations:
        raise AllocationError(f"{trip_type.value} trip requires at least one destination")


def _allocate_fixed(
    total_days: int, start_date: date, destinations: Sequence[Destination]
) -> list[DaySlot]:
    _require_destinations(destinations, TripType.multi_fixed)

    missing = [d.name for d in destinations if not d.planned_days]
    if missing:
        raise AllocationError(
            f"fixed allocation needs at least one planned day for: {', '.join(missing)}"
        )

    planned_total = sum(d.planned_days or 0 for d in destinations)
    if planned_total != total_days:
        breakdown = " + ".join(f"{d.name} {d.planned_days}" for d in destinations)
        raise AllocationError(
            f"destination days do not match trip length: {breakdown} = {planned_total} days, "
            f"but the trip is {total_days} days"
        )

    slots: list[DaySlot] = []
    for destination in destinations:
        for _ in range(destination.planned_days or 0):
            slots.append(
                _slot(
                    start_date,
                    len(slots) + 1,
                    destination_id=destination.id,
                    destination_name=destination.name,
                )
            )
    return slots


def _allocate_flexible(
    total_days: int,
    start_date: date,
    destinations: Sequence[Destination],
    min_stay_days: int,
) -> list[DaySlot]:
    _require_destinations(destinations, TripType.multi_flexible)

    count = len(destinations)
    travel_days = max(0, count - 1)
    # The minimum stay wins over matching the trip length exactly
    available = max(total_days - travel_days, count * min_stay_days)
    if available > total_days - travel_days:
        logger.warning(
            f"{total_days}-day trip is too short for {count} destinations at "
            f"{min_stay_days} days each; allocation will be truncated"
        )

    base, extra = divmod(available, count)

    slots: list[DaySlot] = []
    for index, destination in enumerate(destinations):
        stay = base + (1 if index < extra else 0)
        for _ in range(stay):
            slots.append(
                _slot(
                    start_date,
                    len(slots) + 1,
                    destination_id=destination.id,
                    destination_name=destination.name,
                )
            )

        if index < count - 1:
            arrival = destinations[index + 1]
            slots.append(
                _slot(
                    start_date,
                    len(slots) + 1,
                    destination_id=arrival.id,
                    destination_name=arrival.name,
                    is_travel_day=True,
                    travel_from=destination.name,
                    travel_details=f"Travel day from {destination.name} to {arrival.name}",
                )
            )

    # Guard: pad any shortfall with extended-stay days at the last destination
    last = destinations[-1]
    while len(slots) < total_days:
        slots.append(
            _slot(
                start_date,
                len(slots) + 1,
                destination_id=last.id,
                destination_name=last.name,
                is_extended_stay=True,
            )
        )

    return slots[:total_days]
