"""Upload lifecycle state machine.

Tracks one file of a batch from admission to its settled result and
enforces valid transitions.  A result that arrives after the owning
collection was closed is moved to ``DISCARDED`` instead of being applied.
"""

from __future__ import annotations

from mediaingest.models import UploadState


class UploadStateMachine:
    """Finite state machine for a single file upload.

    Valid transitions::

        PENDING    -> UPLOADING | FAILED
        UPLOADING  -> UPLOADED | FAILED | DISCARDED
        UPLOADED   -> DISCARDED
        FAILED     -> (terminal)
        DISCARDED  -> (terminal)

    ``PENDING -> FAILED`` covers files rejected by admission checks before
    any network call.

    Parameters
    ----------
    name:
        The file name being tracked, used in error messages.
    """

    VALID_TRANSITIONS: dict[UploadState, set[UploadState]] = {
        UploadState.PENDING: {UploadState.UPLOADING, UploadState.FAILED},
        UploadState.UPLOADING: {
            UploadState.UPLOADED,
            UploadState.FAILED,
            UploadState.DISCARDED,
        },
        UploadState.UPLOADED: {UploadState.DISCARDED},
        UploadState.FAILED: set(),
        UploadState.DISCARDED: set(),
    }

    def __init__(self, name: str) -> None:
        self.name: str = name
        self.state: UploadState = UploadState.PENDING

    @property
    def terminal(self) -> bool:
        return not self.VALID_TRANSITIONS[self.state]

    def transition(self, new_state: UploadState) -> None:
        """Attempt to transition to *new_state*.

        Raises
        ------
        ValueError
            If the transition from the current state is not valid.
        """
        allowed = self.VALID_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(
                f"Invalid state transition: {self.state.value} -> {new_state.value} "
                f"for upload {self.name}. "
                f"Allowed transitions from {self.state.value}: "
                f"{{{', '.join(sorted(s.value for s in allowed))}}}"
            )
        self.state = new_state

    def assert_can_apply(self) -> None:
        """Assert the upload produced a URL that may enter the collection.

        Raises
        ------
        ValueError
            If the upload is in any state other than ``UPLOADED``.
        """
        if self.state != UploadState.UPLOADED:
            raise ValueError(
                f"Upload {self.name} cannot be applied in state "
                f"{self.state.value}; must be in {UploadState.UPLOADED.value}"
            )
