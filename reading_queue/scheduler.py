"""Round-robin rotation over a queue's item sequence.

The head of ``queue.items`` is the current item. Every operation works in
place on the given state; an empty queue is reported by returning None.
"""

from .models.queue import BlockQueueItem, NoteQueueItem, QueueState, SchedulerKind, now_iso


def _touch(queue: QueueState) -> None:
    queue.metadata.updated_at = now_iso()


class SimpleScheduler:
    """FIFO rotation: ``next`` moves the head to the tail, ``dismiss_current`` drops it."""

    kind: SchedulerKind = "simple"

    @staticmethod
    def current(queue: QueueState) -> NoteQueueItem | BlockQueueItem | None:
        """Return the head item without touching the queue."""
        return queue.items[0] if queue.items else None

    @classmethod
    def next(cls, queue: QueueState) -> NoteQueueItem | BlockQueueItem | None:
        """Rotate left by one and return the new head.

        A one-item queue keeps its order but is still touched, so the
        rotation shows up in ``updatedAt`` like any other.
        """
        if not queue.items:
            return None

        first = queue.items.pop(0)
        queue.items.append(first)
        _touch(queue)
        return cls.current(queue)

    @staticmethod
    def dismiss_current(queue: QueueState) -> NoteQueueItem | BlockQueueItem | None:
        """Remove the head permanently and return it."""
        if not queue.items:
            return None

        removed = queue.items.pop(0)
        _touch(queue)
        return removed


SCHEDULERS: dict[str, type[SimpleScheduler]] = {
    SimpleScheduler.kind: SimpleScheduler,
}


def scheduler_for(queue: QueueState) -> type[SimpleScheduler]:
    """Pick the scheduler registered for the queue's ``scheduler.kind``."""
    kind = queue.metadata.scheduler.kind
    try:
        return SCHEDULERS[kind]
    except KeyError:
        raise ValueError(f"Unsupported scheduler kind: {kind}") from None
