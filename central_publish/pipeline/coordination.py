"""Per-run coordination across the projects of a multi-project build.

Each project reports whether it wants to publish (PENDING) or not
(SKIPPED). Publishing happens once, when the last project has reported,
so that all pending projects go out in a single bundle.

A PublishCoordinator lives for exactly one pipeline run; create a new
one per run and pass it explicitly to whoever reports into it.
"""

import logging
import threading
from typing import Hashable, Iterable, Optional

from central_publish.bundle.types import Artifact
from central_publish.pipeline.types import PublishState

logger = logging.getLogger(__name__)


class PublishCoordinator:
    def __init__(self) -> None:
        self._states: dict[Hashable, PublishState] = {}
        self._artifacts: dict[Hashable, list[Artifact]] = {}
        # Host builds may run projects on parallel threads
        self._lock = threading.Lock()

    def mark(
        self,
        project: Hashable,
        state: PublishState,
        artifacts: Optional[Iterable[Artifact]] = None,
    ) -> None:
        """Record a project's state and, for PENDING projects, its artifacts."""
        logger.info("Setting state %s for %s", state, project)
        with self._lock:
            self._states[project] = PublishState(state)
            if state == PublishState.PENDING:
                self._artifacts[project] = list(artifacts or ())
            else:
                self._artifacts.pop(project, None)

    def state_of(self, project: Hashable) -> Optional[PublishState]:
        with self._lock:
            return self._states.get(project)

    def all_marked(self, projects: Iterable[Hashable]) -> bool:
        """True once every project in `projects` has reported a state."""
        with self._lock:
            return all(project in self._states for project in projects)

    def pending(self, projects: Iterable[Hashable]) -> list[Hashable]:
        """Projects marked PENDING, in the order given."""
        with self._lock:
            return [p for p in projects if self._states.get(p) == PublishState.PENDING]

    def pending_artifacts(self, projects: Iterable[Hashable]) -> list[Artifact]:
        """Artifacts of every pending project, in project order."""
        pending = self.pending(projects)
        with self._lock:
            return [a for p in pending for a in self._artifacts.get(p, [])]
