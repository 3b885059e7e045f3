"""glexporter.scheduler

Drives the repeating poll cycle.

Each cycle walks the configured targets in order. Wildcard entries are
expanded first; every concrete target then gets its own daemon thread
that fetches and records independently. The cycle does not wait for
those threads before sleeping, so a slow target can overlap with the
next cycle. With ``skip_overlapping_polls`` enabled, a target whose
previous poll is still running is skipped instead.

Failures are isolated: a GitLab error in one target's thread is logged
and leaves that target's metrics stale until the next cycle; a failed
wildcard expansion skips only that entry for the cycle.
"""

from __future__ import annotations

import traceback
from threading import Event, Lock, Thread
from typing import List, Optional, Set, Tuple

from .config import ExporterConfig
from .fetcher import fetch_latest
from .gitlab_client import GitLabClient, PlatformAPIError
from .logging_config import get_logger
from .models import Target
from .recorder import MetricsRecorder
from .resolver import WildcardExpansionError, resolve, targets_from_config

logger = get_logger(__name__)


class PollScheduler:
    def __init__(
        self,
        config: ExporterConfig,
        client: GitLabClient,
        recorder: MetricsRecorder,
    ) -> None:
        self.config = config
        self.client = client
        self.recorder = recorder
        self.targets = targets_from_config(config.projects)

        self._stop = Event()
        self._in_flight: Set[Tuple[str, str]] = set()
        self._in_flight_lock = Lock()

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run_forever(self) -> None:
        """Run cycles every polling interval until stop() is called."""

        interval = self.config.polling_interval_seconds
        logger.info("Scheduler starting: %d target(s) every %ss", len(self.targets), interval)

        while not self._stop.is_set():
            try:
                self.run_cycle()
            except Exception:
                logger.exception("Poll cycle failed, retrying in %ss", interval)
            self._stop.wait(interval)

        logger.info("Scheduler stopped")

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run_cycle(self) -> List[Thread]:
        """Dispatch one polling thread per concrete target; returns them unjoined."""

        threads: List[Thread] = []

        for entry in self.targets:
            try:
                resolved = resolve(self.client, entry)
            except WildcardExpansionError as exc:
                logger.error(str(exc), extra={"project": entry.name, "ref": entry.ref})
                continue

            for target in resolved:
                thread = self._launch(target)
                if thread is not None:
                    threads.append(thread)

        return threads

    # ------------------------------------------------------------------
    # Per-target work
    # ------------------------------------------------------------------

    def _launch(self, target: Target) -> Optional[Thread]:
        if self.config.skip_overlapping_polls:
            with self._in_flight_lock:
                if target.key in self._in_flight:
                    logger.debug("Previous poll still running, skipping %s", target)
                    return None
                self._in_flight.add(target.key)

        thread = Thread(target=self.poll_once, args=(target,), daemon=True, name=f"poll-{target}")
        try:
            thread.start()
        except RuntimeError:
            with self._in_flight_lock:
                self._in_flight.discard(target.key)
            raise
        return thread

    def poll_once(self, target: Target) -> None:
        """Fetch and record one target; errors stay inside this target."""

        try:
            stored = self.recorder.snapshot_for(target)
            result = fetch_latest(self.client, target, stored)
            self.recorder.record(target, result)

        except PlatformAPIError as e:
            logger.error(
                "Unable to poll %s: %s",
                target,
                e,
                extra={"project": target.name, "ref": target.ref},
            )

        except Exception as e:
            logger.error(
                "Unexpected error polling %s: %s: %s",
                target,
                type(e).__name__,
                e,
                extra={"project": target.name, "ref": target.ref, "traceback": traceback.format_exc()},
            )

        finally:
            with self._in_flight_lock:
                self._in_flight.discard(target.key)
