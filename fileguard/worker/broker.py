"""
Taskiq broker and scheduler configuration.

Imported by the FastAPI process (to enqueue checks), the taskiq worker CLI
(to run them) and the taskiq scheduler CLI (to trigger them on a cadence).
Keep this module free of fileguard.main imports to avoid circular
dependencies.

    taskiq worker fileguard.worker.broker:broker fileguard.worker.tasks
    taskiq scheduler fileguard.worker.broker:scheduler fileguard.worker.tasks
"""

import taskiq_fastapi
from taskiq import TaskiqScheduler
from taskiq.schedule_sources import LabelScheduleSource
from taskiq_redis import ListQueueBroker, RedisAsyncResultBackend

from fileguard.core.config import settings

__all__ = ("broker", "scheduler")


def _redis_url(db: int) -> str:
    auth = f":{settings.REDIS_PASSWORD}@" if settings.REDIS_PASSWORD else ""
    return f"redis://{auth}{settings.REDIS_HOST}:{settings.REDIS_PORT}/{db}"


result_backend = RedisAsyncResultBackend(
    redis_url=_redis_url(settings.REDIS_DB_RESULTS),
    result_ex_time=3600,
)

broker = ListQueueBroker(
    url=_redis_url(settings.REDIS_DB_BROKER),
    queue_name="fileguard:tasks",
).with_result_backend(result_backend)

scheduler = TaskiqScheduler(broker=broker, sources=[LabelScheduleSource(broker)])

# Wire broker to FastAPI app for dependency resolution in tasks.
# Uses a string path to avoid circular imports, resolved lazily.
taskiq_fastapi.init(broker, "fileguard.main:app")
