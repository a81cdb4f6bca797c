"""
Lottery allocation

Winners are drawn uniformly at random without replacement with a partial
Fisher-Yates shuffle. All winners are invited in a single transaction, so a
failed invite leaves every entry of the run in WAITING and no notification
is sent. WIN and LOSE fan-outs then run concurrently.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from waitlist_lottery.config import settings
from waitlist_lottery.core.database import DatabaseManager, async_session
from waitlist_lottery.core.exceptions import (
    CapacityNotSet,
    EmptyWaitlist,
    InvalidSampleSize,
    NoAvailableSlots,
)
from waitlist_lottery.core.metrics import LOTTERY_RUNS
from waitlist_lottery.models.waitlist import WaitingListEntry, EntryStatus
from waitlist_lottery.repositories.waitlist_repository import WaitlistRepository
from waitlist_lottery.services.event_service import EventService
from waitlist_lottery.services.notification_service import FanOutResult, NotificationService
from waitlist_lottery.services.waitlist_service import WaitlistService

logger = logging.getLogger(__name__)

T = TypeVar("T")


def select_lottery_winners(entries: Sequence[T], slots_to_fill: int, rng: random.Random) -> List[T]:
    """
    Draw ``slots_to_fill`` items uniformly at random without replacement.

    Only the first ``slots_to_fill`` positions of a copy are shuffled, each
    swapped with a uniformly chosen element of the unprocessed suffix.
    """
    pool = list(entries)
    slots_to_fill = max(0, min(slots_to_fill, len(pool)))
    for i in range(slots_to_fill):
        j = rng.randint(i, len(pool) - 1)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:slots_to_fill]


def get_lottery_losers(entries: Sequence[T], winners: Sequence[T]) -> List[T]:
    """Entries not drawn, in their original order"""
    winner_ids = {id(winner) for winner in winners}
    return [entry for entry in entries if id(entry) not in winner_ids]


@dataclass
class LotteryResult:
    event_id: UUID
    sample_size: int
    available_slots: int
    winners: List[WaitingListEntry] = field(default_factory=list)
    losers: List[WaitingListEntry] = field(default_factory=list)
    win_notifications: Optional[FanOutResult] = None
    lose_notifications: Optional[FanOutResult] = None

    @property
    def slots_filled(self) -> int:
        return len(self.winners)


class LotteryService:

    def __init__(
        self,
        db: AsyncSession,
        session_factory: async_sessionmaker = async_session,
        rng: Optional[random.Random] = None
    ):
        self.db = db
        self.db_manager = DatabaseManager(session_factory)
        self.rng = rng or random.Random(settings.LOTTERY_RANDOM_SEED)
        self.waitlist_repo = WaitlistRepository(db)
        self.event_service = EventService(db)
        self.waitlist_service = WaitlistService(db)
        self.notification_service = NotificationService(db, session_factory)

    async def run_lottery(self, organizer_id: UUID, event_id: UUID, sample_size: int) -> LotteryResult:
        event = await self.event_service.get_owned_event(organizer_id, event_id)

        if event.max_capacity is None or event.current_capacity is None:
            LOTTERY_RUNS.labels(outcome="rejected").inc()
            raise CapacityNotSet(event_id)

        available_slots = event.max_capacity - event.current_capacity
        if available_slots <= 0:
            LOTTERY_RUNS.labels(outcome="rejected").inc()
            raise NoAvailableSlots()

        if sample_size < 1 or sample_size > available_slots:
            LOTTERY_RUNS.labels(outcome="rejected").inc()
            raise InvalidSampleSize(sample_size, available_slots)

        waiting = await self.waitlist_repo.list_by_event_and_status(event_id, EntryStatus.WAITING)
        if not waiting:
            LOTTERY_RUNS.labels(outcome="rejected").inc()
            raise EmptyWaitlist()

        winners = select_lottery_winners(waiting, min(sample_size, len(waiting)), self.rng)
        losers = get_lottery_losers(waiting, winners)

        try:
            async with self.db_manager.transaction(self.db):
                for winner in winners:
                    await self.waitlist_service.mark_invited(event_id, winner.user_id, source="lottery")
        except Exception:
            LOTTERY_RUNS.labels(outcome="failed").inc()
            logger.error(f"Lottery for event {event_id} aborted while inviting winners")
            raise

        win_result, lose_result = await asyncio.gather(
            self.notification_service.notify_winners(event_id, winners, event.title),
            self.notification_service.notify_losers(event_id, losers, event.title),
        )

        LOTTERY_RUNS.labels(outcome="completed").inc()
        logger.info(
            f"Lottery for event {event_id}: {len(winners)} invited, {len(losers)} not selected",
            extra={"event_id": str(event_id), "sample_size": sample_size}
        )
        return LotteryResult(
            event_id=event_id,
            sample_size=sample_size,
            available_slots=available_slots,
            winners=winners,
            losers=losers,
            win_notifications=win_result,
            lose_notifications=lose_result,
        )
