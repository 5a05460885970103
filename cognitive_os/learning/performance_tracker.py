"""
Performance Tracker and Activity Log.

Records a "performance signature" for every trial inside an explicitly
opened training session, and keeps an append-only history of completed
sessions for recency and fatigue calculations.

Session lifecycle:
1. start_session(module_id) -> SessionHandle
2. record_trial(handle, trial), any number of times
3. end_session(handle) -> Session (appended to history)
   or abandon_session(handle) to discard it

Only one session may be open at a time. Misuse raises an
InvalidSessionStateError subclass instead of being silently ignored.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import uuid4

from loguru import logger
from pydantic import ValidationError

from cognitive_os.core.clock import Clock, as_aware, system_clock
from cognitive_os.core.documents import (
    DOCUMENT_VERSION,
    SessionEntry,
    SessionHistoryDocument,
    TrialEntry,
)
from cognitive_os.core.errors import (
    NoOpenSessionError,
    PersistenceError,
    SessionAlreadyOpenError,
    StaleSessionHandleError,
)
from cognitive_os.core.trial import Trial
from cognitive_os.db.state_store import StateStorage

SESSION_HISTORY_KEY = "session_history"
DEFAULT_HISTORY_LIMIT = 100
RECENT_SESSIONS_IN_STATS = 10

# Within-session fatigue: starts after 15 trials, saturates 20 trials later
FATIGUE_ONSET_TRIALS = 15
FATIGUE_RAMP_TRIALS = 20


def fatigue_index(trials_so_far: int) -> float:
    """Within-session fatigue estimate (0 = fresh, 1 = highly fatigued)."""
    return min(1.0, max(0.0, (trials_so_far - FATIGUE_ONSET_TRIALS) / FATIGUE_RAMP_TRIALS))


@dataclass(frozen=True)
class TrialRecord:
    """A trial as recorded inside a session."""

    trial: Trial
    trial_number: int
    recorded_at: datetime
    fatigue_index: float = 0.0

    @property
    def correct(self) -> bool:
        return self.trial.correct


@dataclass(frozen=True)
class Session:
    """One completed training run. Never mutated after creation."""

    session_id: str
    module_id: str
    timestamp: datetime
    ended_at: datetime
    trials: tuple[TrialRecord, ...] = ()

    @property
    def trial_count(self) -> int:
        return len(self.trials)

    @property
    def duration(self) -> timedelta:
        return self.ended_at - self.timestamp

    @property
    def duration_seconds(self) -> float:
        return self.duration.total_seconds()

    @property
    def accuracy(self) -> float:
        if not self.trials:
            return 0.0
        return sum(1 for t in self.trials if t.correct) / len(self.trials)


@dataclass(frozen=True)
class SessionHandle:
    """Proof of an open session; required to record trials and to end it."""

    session_id: str
    module_id: str
    started_at: datetime


@dataclass
class _OpenSession:
    handle: SessionHandle
    trials: list[TrialRecord] = field(default_factory=list)


@dataclass(frozen=True)
class SessionSummary:
    """Summary statistics for one session."""

    total_trials: int
    accuracy: float
    avg_reaction_time_ms: int
    rt_variance: int
    error_breakdown: dict[str, int]
    fatigue_dropoff: float
    skill_updates: int = 0


@dataclass(frozen=True)
class RecentSessionStat:
    timestamp: datetime
    trials: int
    accuracy: float


@dataclass(frozen=True)
class ModuleStats:
    """Aggregate statistics across all sessions of one module."""

    module_id: str
    total_sessions: int
    total_trials: int
    avg_accuracy: float
    avg_reaction_time_ms: float
    recent_sessions: tuple[RecentSessionStat, ...] = ()


def calculate_variance(values: list[float]) -> float:
    """Population variance."""
    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)


def summarize_session(session: Session, skill_updates: int = 0) -> SessionSummary:
    """
    Calculate summary statistics for a session.

    Args:
        session: Completed session
        skill_updates: Number of rating updates the session produced

    Returns:
        SessionSummary
    """
    trials = session.trials
    if not trials:
        return SessionSummary(
            total_trials=0,
            accuracy=0.0,
            avg_reaction_time_ms=0,
            rt_variance=0,
            error_breakdown={},
            fatigue_dropoff=0.0,
            skill_updates=skill_updates,
        )

    rts = [t.trial.reaction_time_ms for t in trials if t.trial.reaction_time_ms is not None]
    avg_rt = sum(rts) / len(rts) if rts else 0.0
    rt_variance = calculate_variance(rts) if rts else 0.0

    error_breakdown: dict[str, int] = {}
    for t in trials:
        if not t.correct and t.trial.error_type:
            error_breakdown[t.trial.error_type] = error_breakdown.get(t.trial.error_type, 0) + 1

    # Accuracy drop from the first half of the session to the second
    fatigue_dropoff = 0.0
    if len(trials) >= 2:
        half = len(trials) // 2
        first, second = trials[:half], trials[half:]
        first_acc = sum(1 for t in first if t.correct) / len(first)
        second_acc = sum(1 for t in second if t.correct) / len(second)
        fatigue_dropoff = round(first_acc - second_acc, 2)

    return SessionSummary(
        total_trials=len(trials),
        accuracy=session.accuracy,
        avg_reaction_time_ms=round(avg_rt),
        rt_variance=round(rt_variance),
        error_breakdown=error_breakdown,
        fatigue_dropoff=fatigue_dropoff,
        skill_updates=skill_updates,
    )


class ActivityLog:
    """
    Owns the open session and the append-only history of completed sessions.

    History is capped at ``history_limit`` sessions; the oldest are dropped
    first. Persistence goes through an optional StateStorage and is
    best-effort.
    """

    def __init__(
        self,
        storage: StateStorage | None = None,
        clock: Clock | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        storage_key: str = SESSION_HISTORY_KEY,
    ):
        if history_limit < 1:
            raise ValueError(f"history_limit must be at least 1, got {history_limit}")
        self.storage = storage
        self.clock = clock or system_clock
        self.history_limit = history_limit
        self.storage_key = storage_key
        self._lock = threading.RLock()
        self._history: list[Session] = []
        self._open: _OpenSession | None = None
        self.load()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        """Current time from the clock, always timezone-aware."""
        return as_aware(self.clock())

    def start_session(self, module_id: str, started_at: datetime | None = None) -> SessionHandle:
        """
        Open a new training session.

        Args:
            module_id: Module being trained
            started_at: When training began, for sessions logged after the fact.
                Defaults to now.

        Raises:
            SessionAlreadyOpenError: another session is still open
            ValueError: started_at is in the future
        """
        now = self.now()
        start = now if started_at is None else as_aware(started_at)
        if start > now:
            raise ValueError(f"Session start {start.isoformat()} is in the future")

        with self._lock:
            if self._open is not None:
                raise SessionAlreadyOpenError(self._open.handle.module_id)
            handle = SessionHandle(
                session_id=uuid4().hex,
                module_id=module_id,
                started_at=start,
            )
            self._open = _OpenSession(handle=handle)
        logger.debug(f"Started session {handle.session_id} for {module_id}")
        return handle

    def record_trial(self, handle: SessionHandle, trial: Trial) -> TrialRecord:
        """
        Append a trial to the open session.

        Raises:
            NoOpenSessionError: no session is open
            StaleSessionHandleError: handle is not the open session
        """
        with self._lock:
            current = self._require_open(handle, "record a trial")
            record = TrialRecord(
                trial=trial,
                trial_number=len(current.trials) + 1,
                recorded_at=self.now(),
                fatigue_index=fatigue_index(len(current.trials)),
            )
            current.trials.append(record)
        return record

    def end_session(self, handle: SessionHandle) -> Session:
        """
        Finalize the open session and append it to history.

        Raises:
            NoOpenSessionError: no session is open
            StaleSessionHandleError: handle is not the open session
        """
        with self._lock:
            current = self._require_open(handle, "end a session")
            session = Session(
                session_id=handle.session_id,
                module_id=handle.module_id,
                timestamp=handle.started_at,
                ended_at=self.now(),
                trials=tuple(current.trials),
            )
            self._open = None
            self._history.append(session)
            self._trim_history()
        self.save()
        logger.info(
            f"Session ended: {session.module_id} "
            f"({session.trial_count} trials, {session.duration_seconds:.0f}s)"
        )
        return session

    def abandon_session(self, handle: SessionHandle) -> None:
        """Discard the open session without recording it."""
        with self._lock:
            current = self._require_open(handle, "abandon a session")
            self._open = None
        logger.debug(
            f"Abandoned session {handle.session_id} for {handle.module_id} "
            f"with {len(current.trials)} trials"
        )

    @property
    def open_session(self) -> SessionHandle | None:
        with self._lock:
            return self._open.handle if self._open else None

    def _require_open(self, handle: SessionHandle, action: str) -> _OpenSession:
        if self._open is None:
            raise NoOpenSessionError(action)
        if self._open.handle.session_id != handle.session_id:
            raise StaleSessionHandleError(handle.session_id)
        return self._open

    def _trim_history(self) -> None:
        overflow = len(self._history) - self.history_limit
        if overflow > 0:
            del self._history[:overflow]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_session_history(self, module_id: str | None = None) -> list[Session]:
        """
        Completed sessions ordered by timestamp ascending.

        Args:
            module_id: Only return sessions for this module

        Returns:
            New list on every call
        """
        with self._lock:
            sessions = [s for s in self._history if module_id is None or s.module_id == module_id]
        return sorted(sessions, key=lambda s: s.timestamp)

    def sessions_since(self, cutoff: datetime) -> list[Session]:
        """Sessions whose timestamp is at or after ``cutoff``."""
        cutoff = as_aware(cutoff)
        return [s for s in self.get_session_history() if s.timestamp >= cutoff]

    def get_module_stats(self, module_id: str) -> ModuleStats:
        sessions = self.get_session_history(module_id)
        all_trials = [t for s in sessions for t in s.trials]
        if not all_trials:
            return ModuleStats(
                module_id=module_id,
                total_sessions=len(sessions),
                total_trials=0,
                avg_accuracy=0.0,
                avg_reaction_time_ms=0.0,
                recent_sessions=tuple(
                    RecentSessionStat(s.timestamp, 0, 0.0) for s in sessions[-RECENT_SESSIONS_IN_STATS:]
                ),
            )

        correct = sum(1 for t in all_trials if t.correct)
        rts = [t.trial.reaction_time_ms for t in all_trials if t.trial.reaction_time_ms is not None]
        return ModuleStats(
            module_id=module_id,
            total_sessions=len(sessions),
            total_trials=len(all_trials),
            avg_accuracy=correct / len(all_trials),
            avg_reaction_time_ms=sum(rts) / len(rts) if rts else 0.0,
            recent_sessions=tuple(
                RecentSessionStat(s.timestamp, s.trial_count, s.accuracy)
                for s in sessions[-RECENT_SESSIONS_IN_STATS:]
            ),
        )

    def clear_all_sessions(self) -> None:
        """Empty the history. The open session, if any, is left alone."""
        with self._lock:
            self._history.clear()
        self.save()
        logger.info("All session data cleared")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Replace in-memory history with the persisted document, if any."""
        if self.storage is None:
            return False

        try:
            raw = self.storage.load(self.storage_key)
        except PersistenceError as e:
            logger.warning(f"Failed to load session history: {e}")
            return False
        if raw is None:
            return False

        try:
            document = SessionHistoryDocument.model_validate_json(raw)
            sessions = [_session_from_entry(entry) for entry in document.sessions]
        except ValidationError as e:
            logger.warning(f"Ignoring malformed session history document: {e}")
            return False

        if document.version > DOCUMENT_VERSION:
            logger.warning(
                f"Session history document version {document.version} is newer than "
                f"supported {DOCUMENT_VERSION}; loading known fields only"
            )

        with self._lock:
            self._history = sessions
            self._trim_history()
        logger.debug(f"Loaded {len(sessions)} sessions from storage")
        return True

    def save(self) -> bool:
        """Persist the history (best-effort)."""
        if self.storage is None:
            return False

        with self._lock:
            document = SessionHistoryDocument(
                sessions=[_entry_from_session(s) for s in self._history]
            )
            try:
                self.storage.save(self.storage_key, document.model_dump_json())
            except PersistenceError as e:
                logger.warning(f"Failed to save session history: {e}")
                return False
        return True


def _entry_from_session(session: Session) -> SessionEntry:
    return SessionEntry(
        session_id=session.session_id,
        module_id=session.module_id,
        timestamp=session.timestamp,
        ended_at=session.ended_at,
        trials=[
            TrialEntry(
                correct=t.trial.correct,
                difficulty=t.trial.difficulty,
                reaction_time_ms=t.trial.reaction_time_ms,
                error_type=t.trial.error_type,
                trial_number=t.trial_number,
                recorded_at=t.recorded_at,
                fatigue_index=t.fatigue_index,
            )
            for t in session.trials
        ],
    )


def _session_from_entry(entry: SessionEntry) -> Session:
    return Session(
        session_id=entry.session_id,
        module_id=entry.module_id,
        timestamp=as_aware(entry.timestamp),
        ended_at=as_aware(entry.ended_at),
        trials=tuple(
            TrialRecord(
                trial=Trial(
                    correct=t.correct,
                    difficulty=t.difficulty,
                    reaction_time_ms=t.reaction_time_ms,
                    error_type=t.error_type,
                ),
                trial_number=t.trial_number,
                recorded_at=as_aware(t.recorded_at),
                fatigue_index=t.fatigue_index,
            )
            for t in entry.trials
        ),
    )
