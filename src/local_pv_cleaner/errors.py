class CleanerError(Exception):
    """Base class for local-pv-cleaner errors."""


class ConfigurationError(CleanerError):
    pass


class InventoryError(CleanerError):
    """Listing, reading or deleting a cluster object failed."""


class VolumeNotFoundError(InventoryError):
    """The volume is already gone."""

    def __init__(self, name: str):
        super().__init__(f"PersistentVolume {name} not found")
        self.name = name
