"""
Outbound port for deferred work.

The booking engine hands jobs such as the cancellation mail to a job port
after its own transaction has committed. The port only schedules the work;
delivery happens in an external worker.
"""

import asyncio
import logging
from typing import Any, Protocol

from celery import Celery

from backend.core import config
from backend.core.exceptions import DispatchFailed

CANCELLATION_MAIL_JOB = 'cancellation_mail'

logger = logging.getLogger(__name__)


class JobPort(Protocol):
    async def enqueue(self, job_kind: str, payload: dict[str, Any]) -> None:
        ...


class CeleryJobPort:
    """Sends jobs to a Celery broker by task name; the worker defines the tasks."""

    def __init__(self, celery_app: Celery, task_names: dict[str, str]) -> None:
        self.celery_app = celery_app
        self.task_names = task_names

    async def enqueue(self, job_kind: str, payload: dict[str, Any]) -> None:
        task_name = self.task_names.get(job_kind)
        if task_name is None:
            raise DispatchFailed(f'No task registered for job {job_kind!r}.', details={'job': job_kind})

        try:
            result = await asyncio.to_thread(self.celery_app.send_task, task_name, kwargs=payload)
        except Exception as exc:
            raise DispatchFailed(details={'job': job_kind, 'task': task_name, 'reason': str(exc)}) from exc

        logger.info('Enqueued job=%s task=%s task_id=%s', job_kind, task_name, result.id)


def create_job_port() -> CeleryJobPort:
    celery_app = Celery('booking', broker=config.CELERY_BROKER_URL)
    return CeleryJobPort(celery_app, {CANCELLATION_MAIL_JOB: config.CANCELLATION_MAIL_TASK})
