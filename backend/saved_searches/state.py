"""
Per-saved-search processing state machine.

PENDING -> MATCHING -> (NO_MATCH | MATCHED) -> (SKIPPED | DISPATCHED) -> DONE,
with ERRORED reachable from every non-terminal state.
"""

from dataclasses import dataclass, field
from enum import Enum

from models.types import SavedSearchID
from saved_searches.errors import InvalidTransitionError


class SubscriptionState(str, Enum):
    PENDING = "pending"
    MATCHING = "matching"
    NO_MATCH = "no_match"
    MATCHED = "matched"
    SKIPPED = "skipped"
    DISPATCHED = "dispatched"
    DONE = "done"
    ERRORED = "errored"


ALLOWED_TRANSITIONS = {
    SubscriptionState.PENDING: {SubscriptionState.MATCHING, SubscriptionState.ERRORED},
    SubscriptionState.MATCHING: {
        SubscriptionState.NO_MATCH,
        SubscriptionState.MATCHED,
        SubscriptionState.ERRORED,
    },
    SubscriptionState.NO_MATCH: {SubscriptionState.DONE, SubscriptionState.ERRORED},
    SubscriptionState.MATCHED: {
        SubscriptionState.SKIPPED,
        SubscriptionState.DISPATCHED,
        SubscriptionState.ERRORED,
    },
    SubscriptionState.SKIPPED: {SubscriptionState.DONE},
    SubscriptionState.DISPATCHED: {SubscriptionState.DONE, SubscriptionState.ERRORED},
    SubscriptionState.DONE: set(),
    SubscriptionState.ERRORED: set(),
}

TERMINAL_STATES = {SubscriptionState.DONE, SubscriptionState.ERRORED}


@dataclass
class SubscriptionRun:
    """Tracks one saved search through a single batch run."""

    saved_search_id: SavedSearchID
    state: SubscriptionState = SubscriptionState.PENDING
    history: list[SubscriptionState] = field(
        default_factory=lambda: [SubscriptionState.PENDING]
    )
    matched_listing_ids: list[int] = field(default_factory=list)
    error: str | None = None

    def advance(self, new_state: SubscriptionState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"{self.saved_search_id}: cannot go from {self.state.value} to {new_state.value}"
            )
        self.state = new_state
        self.history.append(new_state)

    def fail(self, error: str) -> None:
        """Move to ERRORED from any non-terminal state."""
        self.error = error
        self.advance(SubscriptionState.ERRORED)

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def retrieved(self) -> bool:
        """True if the match retrieval step completed."""
        return (
            SubscriptionState.NO_MATCH in self.history
            or SubscriptionState.MATCHED in self.history
        )

    @property
    def dispatched(self) -> bool:
        return SubscriptionState.DISPATCHED in self.history

    @property
    def skipped(self) -> bool:
        return SubscriptionState.SKIPPED in self.history
