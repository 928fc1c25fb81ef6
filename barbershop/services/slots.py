# barbershop/services/slots.py

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from .. import config
from ..models import Barber
from ..repository import Repository
from ..schemas import AvailabilityResponse
from .common import get_or_404, parse_day

logger = logging.getLogger(__name__)


def slot_label(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def daily_grid(
    day_start: str = config.SLOT_DAY_START,
    slot_minutes: int = config.SLOT_MINUTES,
    slot_count: int = config.SLOT_COUNT,
) -> List[str]:
    """The fixed bookable grid, ascending. Default: 18 half-hour starts from 09:00."""
    current = datetime.combine(date.min, time.fromisoformat(day_start))
    slot_delta = timedelta(minutes=slot_minutes)
    grid = []
    for _ in range(slot_count):
        grid.append(slot_label(current))
        current += slot_delta
    return grid


class SlotService:
    """Bookable start times for a barber on a day.

    Slots do not account for service duration, so a 45 minute booking
    does not block the following slot.
    """

    def __init__(self, repo: Repository):
        self.repo = repo

    def booked_slots(self, barber_id: int, day: date, exclude_appointment_id: Optional[int] = None) -> set:
        day_start_dt = datetime.combine(day, datetime.min.time())
        day_end_dt = day_start_dt + timedelta(days=1)
        appts = self.repo.appointments(
            barber_id=barber_id, start=day_start_dt, end=day_end_dt, exclude_canceled=True
        )
        return {slot_label(a.date) for a in appts if a.id != exclude_appointment_id}

    def available_slots(self, barber_id: int, day) -> List[str]:
        # parse before touching storage
        day = parse_day(day)
        get_or_404(self.repo, Barber, barber_id, "Barber")

        booked = self.booked_slots(barber_id, day)
        available = [slot for slot in daily_grid() if slot not in booked]
        logger.debug("Barber %s on %s: %d free slots", barber_id, day, len(available))
        return available

    def is_free(self, barber_id: int, moment: datetime) -> bool:
        return slot_label(moment) not in self.booked_slots(barber_id, moment.date())

    def availability(self, barber_id: int, day) -> AvailabilityResponse:
        day = parse_day(day)
        return AvailabilityResponse(
            barber_id=barber_id, date=day.isoformat(), available_slots=self.available_slots(barber_id, day)
        )
