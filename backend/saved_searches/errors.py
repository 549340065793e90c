"""Exceptions raised by the saved-search notification pipeline."""


class SavedSearchPipelineError(RuntimeError):
    """Base class for pipeline errors."""


class RetrievalError(SavedSearchPipelineError):
    """The listing store could not be queried for one saved search."""


class SubscriptionLoadError(SavedSearchPipelineError):
    """The list of active saved searches could not be loaded; the run cannot start."""


class RunInProgressError(SavedSearchPipelineError):
    """Another run for the same frequency tier holds the run lock."""

    def __init__(self, frequency: str):
        super().__init__(f"A {frequency} saved search run is already in progress")
        self.frequency = frequency


class InvalidTransitionError(SavedSearchPipelineError):
    """A saved search's processing state machine was driven out of order."""


class StoreWriteError(SavedSearchPipelineError):
    """A watermark or audit write did not complete within the write timeout."""
