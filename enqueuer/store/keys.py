"""
Redis key layout.

This module is the single source of truth for the Redis structures the
enqueuer writes to:

    <ns>queues          SET   -> registry of known queue names
    <ns>queue:<name>    LIST  -> FIFO of due jobs for <name>
    <ns>schedule        ZSET  -> future jobs, scored by `at`
"""

from dataclasses import dataclass

from enqueuer.constants import QUEUE_KEY_PREFIX, QUEUES_KEY, SCHEDULED_JOBS_KEY


@dataclass(frozen=True)
class RedisKeys:
    """Key names under a namespace prefix (empty by default)."""

    namespace: str = ""

    @property
    def queues(self) -> str:
        return f"{self.namespace}{QUEUES_KEY}"

    @property
    def schedule(self) -> str:
        return f"{self.namespace}{SCHEDULED_JOBS_KEY}"

    def queue(self, name: str) -> str:
        """Key of the FIFO list for a logical queue name."""
        return f"{self.namespace}{QUEUE_KEY_PREFIX}{name}"
