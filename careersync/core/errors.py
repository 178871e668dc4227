"""Error taxonomy shared across the application."""


class CareerSyncError(Exception):
    """Base class for all application errors."""


class InputValidationError(CareerSyncError):
    """Blank resume or query, caught before any request is issued."""


class AnalysisError(CareerSyncError):
    """The analysis service failed or returned unusable content."""


class PersistenceError(CareerSyncError):
    """A persisted record could not be decoded."""


class StartupError(CareerSyncError):
    """Fatal configuration problem, e.g. a missing API key."""
