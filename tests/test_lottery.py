"""
Lottery draw and allocation
"""

import random
from collections import Counter
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import select

from waitlist_lottery.core.exceptions import (
    CapacityNotSet,
    ConcurrentUpdate,
    EmptyWaitlist,
    EventNotFound,
    InvalidSampleSize,
    NoAvailableSlots,
    NotAuthorized,
)
from waitlist_lottery.models import Event, EntryStatus, Notification, NotificationType
from waitlist_lottery.services.lottery_service import (
    LotteryService,
    get_lottery_losers,
    select_lottery_winners,
)
from waitlist_lottery.services.waitlist_service import WaitlistService

from factories import fetch_entry, join_users, make_event


async def all_notifications(session_factory, event_id):
    async with session_factory() as session:
        result = await session.execute(select(Notification).where(Notification.event_id == event_id))
        return list(result.scalars().all())


class TestDraw:

    def test_draws_requested_number_without_repeats(self, rng):
        pool = list(range(20))
        winners = select_lottery_winners(pool, 7, rng)
        assert len(winners) == 7
        assert len(set(winners)) == 7
        assert set(winners) <= set(pool)

    def test_does_not_mutate_input(self, rng):
        pool = list(range(10))
        select_lottery_winners(pool, 5, rng)
        assert pool == list(range(10))

    def test_caps_at_pool_size(self, rng):
        assert sorted(select_lottery_winners([1, 2, 3], 10, rng)) == [1, 2, 3]
        assert select_lottery_winners([], 3, rng) == []

    def test_same_seed_same_draw(self):
        pool = list(range(50))
        first = select_lottery_winners(pool, 10, random.Random(42))
        second = select_lottery_winners(pool, 10, random.Random(42))
        assert first == second

    def test_losers_partition_the_pool(self, rng):
        pool = [object() for _ in range(8)]
        winners = select_lottery_winners(pool, 3, rng)
        losers = get_lottery_losers(pool, winners)
        assert len(winners) + len(losers) == len(pool)
        assert not {id(w) for w in winners} & {id(l) for l in losers}
        assert losers == [entry for entry in pool if entry not in winners]

    @pytest.mark.slow
    def test_every_entry_can_win(self):
        rng = random.Random(7)
        wins = Counter()
        for _ in range(3000):
            wins.update(select_lottery_winners(range(5), 2, rng))
        # Each of 5 entries is expected 1200 times
        assert all(900 < wins[i] < 1500 for i in range(5))


class TestRunLottery:

    @pytest.mark.asyncio
    async def test_two_of_five(self, session_factory, organizer, event, rng):
        users = await join_users(session_factory, event.id, 5)

        async with session_factory() as session:
            result = await LotteryService(session, session_factory, rng).run_lottery(
                organizer.id, event.id, 2
            )

        assert result.slots_filled == 2
        assert len(result.losers) == 3
        winner_ids = {w.user_id for w in result.winners}
        loser_ids = {l.user_id for l in result.losers}
        assert winner_ids | loser_ids == {u.id for u in users}
        assert not winner_ids & loser_ids

        for user in users:
            entry = await fetch_entry(session_factory, event.id, user.id)
            expected = EntryStatus.INVITED if user.id in winner_ids else EntryStatus.WAITING
            assert entry.status == expected
            assert (entry.invited_at is not None) == (user.id in winner_ids)

        notifications = await all_notifications(session_factory, event.id)
        by_type = {
            t: {n.recipient_id for n in notifications if n.type == t}
            for t in (NotificationType.WIN, NotificationType.LOSE)
        }
        assert by_type[NotificationType.WIN] == winner_ids
        assert by_type[NotificationType.LOSE] == loser_ids
        win = next(n for n in notifications if n.type == NotificationType.WIN)
        assert win.title == "Swim Lessons: You have been selected!"
        lose = next(n for n in notifications if n.type == NotificationType.LOSE)
        assert lose.title == "Swim Lessons: Lottery Results"
        assert not win.dismissed

    @pytest.mark.asyncio
    async def test_sample_larger_than_waitlist(self, session_factory, organizer, rng):
        event = await make_event(session_factory, organizer.id, max_capacity=10)
        await join_users(session_factory, event.id, 3)

        async with session_factory() as session:
            result = await LotteryService(session, session_factory, rng).run_lottery(
                organizer.id, event.id, 8
            )

        assert result.slots_filled == 3
        assert result.losers == []
        assert result.lose_notifications.written == 0

    @pytest.mark.asyncio
    async def test_seeded_runs_repeat(self, session_factory, organizer):
        drawn = []
        for run in range(2):
            event = await make_event(session_factory, organizer.id, title=f"Run {run}", max_capacity=3)
            users = await join_users(session_factory, event.id, 6, prefix=f"run{run}-")
            async with session_factory() as session:
                result = await LotteryService(session, session_factory, random.Random(99)).run_lottery(
                    organizer.id, event.id, 3
                )
            # Positions in listing order, so separate events can be compared
            order = [u.id for u in users]
            drawn.append([order.index(w.user_id) for w in result.winners])
        assert drawn[0] == drawn[1]

    @pytest.mark.asyncio
    async def test_capacity_bounds_sample(self, session_factory, organizer, event, rng):
        users = await join_users(session_factory, event.id, 4)
        async with session_factory() as session:
            service = WaitlistService(session)
            await service.invite(organizer.id, event.id, users[0].id)
            await service.accept_invite(users[0].id, event.id)

        async with session_factory() as session:
            with pytest.raises(InvalidSampleSize) as exc_info:
                await LotteryService(session, session_factory, rng).run_lottery(organizer.id, event.id, 2)
        assert exc_info.value.details["available_slots"] == 1

    @pytest.mark.asyncio
    async def test_sample_size_below_one(self, session_factory, organizer, event, rng):
        await join_users(session_factory, event.id, 2)
        async with session_factory() as session:
            with pytest.raises(InvalidSampleSize):
                await LotteryService(session, session_factory, rng).run_lottery(organizer.id, event.id, 0)

    @pytest.mark.asyncio
    async def test_no_available_slots(self, session_factory, organizer, rng):
        event = await make_event(session_factory, organizer.id, max_capacity=1)
        users = await join_users(session_factory, event.id, 2)
        async with session_factory() as session:
            service = WaitlistService(session)
            await service.invite(organizer.id, event.id, users[0].id)
            await service.accept_invite(users[0].id, event.id)

        async with session_factory() as session:
            with pytest.raises(NoAvailableSlots):
                await LotteryService(session, session_factory, rng).run_lottery(organizer.id, event.id, 1)

    @pytest.mark.asyncio
    async def test_empty_waitlist(self, session_factory, organizer, event, rng):
        async with session_factory() as session:
            with pytest.raises(EmptyWaitlist):
                await LotteryService(session, session_factory, rng).run_lottery(organizer.id, event.id, 1)

    @pytest.mark.asyncio
    async def test_capacity_not_set(self, session_factory, organizer, event, rng):
        async with session_factory() as session:
            stored = await session.get(Event, event.id)
            stored.max_capacity = None
            await session.commit()

        async with session_factory() as session:
            with pytest.raises(CapacityNotSet):
                await LotteryService(session, session_factory, rng).run_lottery(organizer.id, event.id, 1)

    @pytest.mark.asyncio
    async def test_only_organizer_may_run(self, session_factory, event, entrant, rng):
        await join_users(session_factory, event.id, 2)
        async with session_factory() as session:
            with pytest.raises(NotAuthorized):
                await LotteryService(session, session_factory, rng).run_lottery(entrant.id, event.id, 1)

    @pytest.mark.asyncio
    async def test_unknown_event(self, session_factory, organizer, rng):
        async with session_factory() as session:
            with pytest.raises(EventNotFound):
                await LotteryService(session, session_factory, rng).run_lottery(organizer.id, uuid4(), 1)

    @pytest.mark.asyncio
    async def test_failed_invite_rolls_back_the_run(self, session_factory, organizer, event, rng):
        users = await join_users(session_factory, event.id, 4)
        original = WaitlistService.mark_invited
        calls = []

        async def flaky_mark_invited(self, event_id, user_id, source):
            calls.append(user_id)
            if len(calls) == 2:
                raise ConcurrentUpdate(user_id)
            return await original(self, event_id, user_id, source)

        with patch.object(WaitlistService, "mark_invited", flaky_mark_invited):
            async with session_factory() as session:
                with pytest.raises(ConcurrentUpdate):
                    await LotteryService(session, session_factory, rng).run_lottery(organizer.id, event.id, 2)

        for user in users:
            entry = await fetch_entry(session_factory, event.id, user.id)
            assert entry.status == EntryStatus.WAITING
        assert await all_notifications(session_factory, event.id) == []
