from sqlalchemy import select

from app.application.interfaces import EventPublisher
from app.application.process_outbox import ProcessOutboxEventsUseCase
from app.application.transition_sticker import TransitionStickerDTO, TransitionStickerUseCase
from app.domain.models import PaymentStatus, Role, StickerStatus
from app.infrastructure.db_schema import outbox_events_tbl
from tests.factories import create_sticker, create_user


class FakePublisher(EventPublisher):
    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent = []

    async def publish(self, event_type: str, key: str, payload: dict) -> bool:
        self.sent.append((event_type, key, payload))
        return self.succeed


async def statuses(session_factory):
    async with session_factory() as session:
        rows = (await session.execute(select(outbox_events_tbl.c.status))).fetchall()
    return [row.status for row in rows]


async def make_transition(uow):
    admin = await create_user(uow, Role.ADMIN)
    sticker = await create_sticker(uow, admin, StickerStatus.PAID, PaymentStatus.VERIFIED)
    use_case = TransitionStickerUseCase(uow, price_per_sticker=6990, currency="CLP")
    await use_case(TransitionStickerDTO(sticker_id=sticker.id, new_status="PRINTING", actor=admin.email))
    return sticker


async def test_pending_events_are_published_once(uow, session_factory):
    sticker = await make_transition(uow)
    publisher = FakePublisher()

    published = await ProcessOutboxEventsUseCase(uow, publisher)(limit=5)

    assert published == 1
    event_type, key, payload = publisher.sent[0]
    assert event_type == "sticker.status_changed"
    assert key == sticker.id
    assert payload["to_status"] == "PRINTING"
    assert payload["payment_status"] == "PAID"
    assert "event_id" in payload
    assert await statuses(session_factory) == ["published"]

    assert await ProcessOutboxEventsUseCase(uow, publisher)(limit=5) == 0
    assert len(publisher.sent) == 1


async def test_failed_publish_stays_pending(uow, session_factory):
    await make_transition(uow)
    publisher = FakePublisher(succeed=False)

    assert await ProcessOutboxEventsUseCase(uow, publisher)(limit=5) == 0
    assert await statuses(session_factory) == ["pending"]


async def test_publisher_exception_does_not_stop_the_batch(uow, session_factory):
    await make_transition(uow)
    await make_transition(uow)

    class FlakyPublisher(FakePublisher):
        async def publish(self, event_type, key, payload):
            if not self.sent:
                self.sent.append(None)
                raise RuntimeError("broker down")
            return await super().publish(event_type, key, payload)

    publisher = FlakyPublisher()

    assert await ProcessOutboxEventsUseCase(uow, publisher)(limit=5) == 1
    assert sorted(await statuses(session_factory)) == ["pending", "published"]
