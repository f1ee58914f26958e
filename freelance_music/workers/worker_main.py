# freelance_music/workers/worker_main.py
import logging

from rq import Queue, SimpleWorker

from freelance_music.core.config import settings
from freelance_music.workers.queue import get_redis_connection


QUEUE_NAMES = [settings.BILLING_QUEUE_NAME]


def main():
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=settings.LOG_LEVEL,
    )
    redis_conn = get_redis_connection()

    queues = [Queue(name, connection=redis_conn) for name in QUEUE_NAMES]

    worker = SimpleWorker(queues, connection=redis_conn)

    worker.work()


if __name__ == "__main__":
    main()
