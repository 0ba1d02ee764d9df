# cacs_api/utils/notifier.py
import logging
import queue
import threading
import time
from typing import Callable, List, Optional

from cacs_api.utils.mailer import EmailJob, MailerNotConfigured

logger = logging.getLogger(__name__)

_STOP = object()


class Notifier:
    """Bounded background queue for outbound mail.

    Request handlers call ``enqueue`` and move on; worker threads deliver the
    jobs, retrying failed sends a fixed number of times. Nothing here ever
    raises back into the request that queued the job.
    """

    def __init__(
        self,
        sender: Callable[[EmailJob], None],
        maxsize: int = 100,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        workers: int = 1,
    ):
        self.sender = sender
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.workers = max(1, workers)
        self._queue: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        with self._lock:
            if self._running:
                return
            self._running = True
            for i in range(self.workers):
                thread = threading.Thread(target=self._work, name=f"notifier-{i}", daemon=True)
                thread.start()
                self._threads.append(thread)
        logger.info("Notifier started with %d worker(s)", self.workers)

    def stop(self, timeout: Optional[float] = 5.0):
        with self._lock:
            if not self._running:
                return
            self._running = False
            threads, self._threads = self._threads, []
        # Sentinels go in after pending jobs so the queue drains first
        for _ in threads:
            self._queue.put(_STOP)
        for thread in threads:
            thread.join(timeout)
        logger.info("Notifier stopped")

    def enqueue(self, job: EmailJob) -> bool:
        if not self._running:
            logger.warning("Notifier not running; dropping %s email to %s", job.kind, job.to)
            return False
        try:
            self._queue.put_nowait(job)
        except queue.Full:
            logger.warning("Notification queue full; dropping %s email to %s", job.kind, job.to)
            return False
        return True

    def join(self):
        """Block until every queued job has been processed."""
        self._queue.join()

    def _work(self):
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    return
                self._deliver(job)
            finally:
                self._queue.task_done()

    def _deliver(self, job: EmailJob) -> bool:
        for attempt in range(1, self.max_retries + 1):
            try:
                self.sender(job)
                return True
            except MailerNotConfigured as exc:
                logger.warning("Skipping %s email to %s: %s", job.kind, job.to, exc)
                return False
            except Exception:
                logger.exception(
                    "Error sending %s email to %s (attempt %d/%d)", job.kind, job.to, attempt, self.max_retries
                )
                if attempt < self.max_retries and self.retry_delay > 0:
                    time.sleep(self.retry_delay)
        logger.error("Giving up on %s email to %s", job.kind, job.to)
        return False
