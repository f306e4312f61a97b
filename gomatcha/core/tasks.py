"""
File de tâches exécutées après l'envoi de la réponse HTTP.

Les services reçoivent une `TaskQueue` plutôt que les `BackgroundTasks` de FastAPI
pour rester testables hors requête.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)


class TaskQueue(ABC):
    """Interface abstraite d'une file de tâches « fire-and-forget »."""

    @abstractmethod
    def enqueue(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        raise NotImplementedError


class BackgroundTaskQueue(TaskQueue):
    """Implémentation adossée aux BackgroundTasks de la requête courante."""

    def __init__(self, background_tasks: BackgroundTasks):
        self.background_tasks = background_tasks

    def enqueue(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        logger.debug(f"[TaskQueue] Tâche {getattr(func, '__qualname__', func)} ajoutée en arrière-plan.")
        self.background_tasks.add_task(func, *args, **kwargs)


def get_task_queue(background_tasks: BackgroundTasks) -> TaskQueue:
    return BackgroundTaskQueue(background_tasks)
