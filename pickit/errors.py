class PickitError(Exception):
    """Base class for conditions that stop a pick-list run."""


class NoDemandError(PickitError):
    """No sales were found across all sources and manual entries."""

    def __init__(self, message: str = "No sales found to process. Check the source exports and connections."):
        super().__init__(message)


class CatalogUnavailableError(PickitError):
    """A mandatory catalog (stock or combos) is missing or unreadable."""

    def __init__(self, name: str, path, reason: str = "not found"):
        self.name = name
        self.path = path
        super().__init__(f"{name} catalog unavailable at {path}: {reason}")
