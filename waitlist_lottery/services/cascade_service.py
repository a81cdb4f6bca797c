"""
Cascade deletion of events and users

Each deletion is a saga of ordered steps, each running in its own
transaction. Cleanup steps are best-effort: a failure is recorded on the
saga and the next step still runs. Deleting the root document is the only
required step and always comes last; if it fails the cascade raises
``CascadeFailed`` carrying the per-step record.
"""

import logging
from typing import Any, Dict
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from waitlist_lottery.core.database import DatabaseManager, async_session
from waitlist_lottery.core.exceptions import CascadeFailed, EventNotFound, UserNotFound
from waitlist_lottery.core.saga import (
    SagaOrchestrator,
    SagaStatus,
    SagaTransaction,
    StepIncomplete,
    saga_orchestrator,
)
from waitlist_lottery.models.waitlist import EntryStatus
from waitlist_lottery.repositories.event_repository import EventRepository
from waitlist_lottery.repositories.notification_repository import NotificationRepository
from waitlist_lottery.repositories.user_repository import UserRepository
from waitlist_lottery.repositories.waitlist_repository import WaitlistRepository
from waitlist_lottery.services.media_service import MediaService

logger = logging.getLogger(__name__)

# Returned cascade record
CascadeResult = SagaTransaction


class CascadeService:

    def __init__(
        self,
        session_factory: async_sessionmaker = async_session,
        orchestrator: SagaOrchestrator = saga_orchestrator
    ):
        self.session_factory = session_factory
        self.db_manager = DatabaseManager(session_factory)
        self.orchestrator = orchestrator

    # Event cascade

    async def delete_event(self, event_id: UUID) -> CascadeResult:
        async with self.session_factory() as session:
            event = await EventRepository(session).get_by_id(event_id)
            if event is None:
                raise EventNotFound(event_id)
            organizer_id = event.organizer_id

        saga = self.build_event_saga(event_id, organizer_id)
        await self.orchestrator.execute_saga(saga)
        return self._finish(saga)

    def build_event_saga(self, event_id: UUID, organizer_id: UUID) -> SagaTransaction:
        saga = self.orchestrator.create_saga(
            name="delete_event",
            context={"event_id": event_id, "organizer_id": organizer_id}
        )
        self.orchestrator.add_step(saga, "delete_poster", self._delete_poster)
        self.orchestrator.add_step(saga, "delete_qr_code", self._delete_qr_code)
        self.orchestrator.add_step(saga, "cleanup_waitlist", self._cleanup_event_waitlist)
        self.orchestrator.add_step(saga, "cleanup_organizer", self._cleanup_organizer)
        self.orchestrator.add_step(saga, "delete_notifications", self._delete_event_notifications)
        self.orchestrator.add_step(saga, "delete_event_document", self._delete_event_document, required=True)
        return saga

    async def _delete_poster(self, context: Dict[str, Any]) -> bool:
        async with self.session_factory() as session:
            return await MediaService(session).delete_event_poster(context["event_id"])

    async def _delete_qr_code(self, context: Dict[str, Any]) -> bool:
        async with self.session_factory() as session:
            return await MediaService(session).delete_event_qr_code(context["event_id"])

    async def _cleanup_event_waitlist(self, context: Dict[str, Any]) -> int:
        """Strip the event from each entrant's lists, then delete the entry"""
        event_id = context["event_id"]
        async with self.session_factory() as session:
            entries = await WaitlistRepository(session).list_by_event(event_id)
            user_ids = [entry.user_id for entry in entries]

        failures = {}
        for user_id in user_ids:
            try:
                async with self.db_manager.atomic_transaction() as session:
                    user = await UserRepository(session).get_by_id(user_id)
                    if user is not None:
                        user.strip_event(event_id)
                    await WaitlistRepository(session).delete(event_id, user_id)
            except Exception as e:
                logger.error(f"Failed to remove waitlist entry of user {user_id} for event {event_id}: {e}")
                failures[str(user_id)] = str(e)

        if failures:
            raise StepIncomplete("cleanup_waitlist", failures)
        return len(user_ids)

    async def _cleanup_organizer(self, context: Dict[str, Any]) -> bool:
        async with self.db_manager.atomic_transaction() as session:
            organizer = await UserRepository(session).get_by_id(context["organizer_id"])
            if organizer is None:
                return False
            return organizer.remove_membership("events_created_ids", context["event_id"])

    async def _delete_event_notifications(self, context: Dict[str, Any]) -> int:
        async with self.db_manager.atomic_transaction() as session:
            return await NotificationRepository(session).delete_all_for_event(context["event_id"])

    async def _delete_event_document(self, context: Dict[str, Any]) -> bool:
        async with self.db_manager.atomic_transaction() as session:
            if not await EventRepository(session).delete(context["event_id"]):
                raise EventNotFound(context["event_id"])
        return True

    # User cascade

    async def delete_user_cascade(self, user_id: UUID) -> CascadeResult:
        async with self.session_factory() as session:
            if await UserRepository(session).get_by_id(user_id) is None:
                raise UserNotFound(user_id)

        saga = self.orchestrator.create_saga(name="delete_user", context={"user_id": user_id})
        self.orchestrator.add_step(saga, "cleanup_waitlist", self._cleanup_user_waitlist)
        self.orchestrator.add_step(
            saga,
            "delete_created_events",
            lambda context: self._delete_created_events(saga, context)
        )
        self.orchestrator.add_step(saga, "delete_notifications", self._delete_user_notifications)
        self.orchestrator.add_step(saga, "delete_user_document", self._delete_user_document, required=True)

        await self.orchestrator.execute_saga(saga)
        return self._finish(saga)

    async def _cleanup_user_waitlist(self, context: Dict[str, Any]) -> int:
        """Release accepted slots, then delete each of the user's entries"""
        user_id = context["user_id"]
        async with self.session_factory() as session:
            entries = await WaitlistRepository(session).list_by_user(user_id)
            targets = [(entry.event_id, entry.status) for entry in entries]

        failures = {}
        for event_id, status in targets:
            try:
                async with self.db_manager.atomic_transaction() as session:
                    if status == EntryStatus.ACCEPTED:
                        # Conditional decrement, never below zero
                        await EventRepository(session).decrement_capacity(event_id)
                    await WaitlistRepository(session).delete(event_id, user_id)
            except Exception as e:
                logger.error(f"Failed to remove entry of user {user_id} for event {event_id}: {e}")
                failures[str(event_id)] = str(e)

        if failures:
            raise StepIncomplete("cleanup_waitlist", failures)
        return len(targets)

    async def _delete_created_events(self, parent: SagaTransaction, context: Dict[str, Any]) -> int:
        user_id = context["user_id"]
        async with self.session_factory() as session:
            user = await UserRepository(session).get_by_id(user_id)
            event_ids = list(user.events_created_ids or []) if user else []

        failures = {}
        for event_id in event_ids:
            try:
                parent.children.append(await self.delete_event(UUID(event_id)))
            except CascadeFailed as e:
                parent.children.append(e.result)
                failures[event_id] = e.message
            except EventNotFound:
                logger.warning(f"Event {event_id} listed for user {user_id} no longer exists")

        if failures:
            raise StepIncomplete("delete_created_events", failures)
        return len(event_ids)

    async def _delete_user_notifications(self, context: Dict[str, Any]) -> int:
        async with self.db_manager.atomic_transaction() as session:
            return await NotificationRepository(session).delete_all_for_user(context["user_id"])

    async def _delete_user_document(self, context: Dict[str, Any]) -> bool:
        async with self.db_manager.atomic_transaction() as session:
            if not await UserRepository(session).delete(context["user_id"]):
                raise UserNotFound(context["user_id"])
        return True

    def _finish(self, saga: SagaTransaction) -> CascadeResult:
        if saga.status == SagaStatus.FAILED:
            raise CascadeFailed(saga)
        if saga.status == SagaStatus.PARTIAL:
            logger.warning(
                f"Cascade {saga.name} completed with failed steps: "
                f"{[step.name for step in saga.failed_steps]}",
                extra={"saga_id": saga.saga_id, **{k: str(v) for k, v in saga.context.items()}}
            )
        return saga
