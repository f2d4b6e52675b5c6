import logging
import json

logger = logging.getLogger(__name__)


class ProcessOutboxEventsUseCase:
    def __init__(self, unit_of_work, publisher):
        self._uow = unit_of_work
        self._publisher = publisher

    async def __call__(self, limit: int = 5) -> int:
        """Обрабатывает pending события из outbox. Возвращает количество опубликованных."""
        published = 0

        async with self._uow() as uow:
            pending = await uow.outbox.get_pending(limit=limit)

            for event in pending:
                try:
                    event_data = event["event_data"]
                    if isinstance(event_data, str):
                        event_data = json.loads(event_data)

                    success = await self._publisher.publish(
                        event_type=event["event_type"],
                        key=event["aggregate_id"],
                        payload={"event_id": event["id"], **event_data}
                    )
                    if success:
                        await uow.outbox.mark_as_published(event["id"])
                        published += 1
                        logger.info(f"Опубликовано {event['event_type']} event {event['id']}")
                    else:
                        logger.warning(f"Неуспешная публикация event {event['id']}, повтор на следующей итерации")
                except Exception as e:
                    logger.error(f"Ошибка обработки outbox event {event['id']}: {e}")

            await uow.commit()

        return published
