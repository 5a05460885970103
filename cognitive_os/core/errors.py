"""
Error taxonomy for Cognitive OS.

Computational misuse (bad catalog definitions, session lifecycle misuse) is
raised. Storage problems are raised by backends as PersistenceError and
caught by the stores, which log them and keep going.
"""


class CognitiveOSError(Exception):
    """Base class for all Cognitive OS errors."""


class CatalogError(CognitiveOSError, ValueError):
    """Raised when a skill catalog or module map definition is invalid."""


class InvalidSessionStateError(CognitiveOSError):
    """Raised when the training session lifecycle is used out of order."""


class SessionAlreadyOpenError(InvalidSessionStateError):
    """Raised when a session is started while another one is still open."""

    def __init__(self, open_module_id: str):
        self.open_module_id = open_module_id
        super().__init__(
            f"A session for module '{open_module_id}' is already open; "
            "end or abandon it before starting another"
        )


class NoOpenSessionError(InvalidSessionStateError):
    """Raised when a trial is recorded or a session ended with no open session."""

    def __init__(self, action: str = "record a trial"):
        self.action = action
        super().__init__(f"Cannot {action}: no session is open")


class StaleSessionHandleError(InvalidSessionStateError):
    """Raised when a handle does not refer to the currently open session."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session handle {session_id} is not the open session")


class PersistenceError(CognitiveOSError):
    """Raised by storage backends when a load or save fails."""
