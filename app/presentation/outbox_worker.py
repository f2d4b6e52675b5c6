import asyncio
import logging

from app.database import AsyncSessionLocal
from app.infrastructure.unit_of_work import UnitOfWork
from app.infrastructure.kafka_producer import KafkaProducerClient
from app.application.process_outbox import ProcessOutboxEventsUseCase
from app.config import settings

logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

kafka_producer = KafkaProducerClient(settings.KAFKA_BOOTSTRAP_SERVERS, settings.KAFKA_TOPIC)


async def outbox_worker():
    """Worker для публикации событий смены статуса из outbox"""
    logger.info("Outbox worker запущен")

    await kafka_producer.start()

    try:
        while True:
            try:
                # UoW и use case создаются на каждую итерацию
                uow = UnitOfWork(AsyncSessionLocal)
                use_case = ProcessOutboxEventsUseCase(unit_of_work=uow, publisher=kafka_producer)

                processed = await use_case(limit=5)
                if processed:
                    logger.info(f"Обработано {processed} outbox events")

                await asyncio.sleep(3)

            except Exception as e:
                logger.error(f"Ошибка в outbox worker: {e}", exc_info=True)
                await asyncio.sleep(10)
    finally:
        await kafka_producer.stop()


async def main():
    await outbox_worker()


if __name__ == "__main__":
    asyncio.run(main())
