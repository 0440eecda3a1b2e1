"""Custom exceptions for filmsync."""


class FilmSyncError(Exception):
    """Base exception for filmsync."""


class ConfigError(FilmSyncError):
    """Raised when configuration is missing or invalid."""


class MetadataNotFoundError(FilmSyncError):
    """Raised when no record exists for an (entity_id, record_type) key."""

    def __init__(self, entity_id: str, record_type: str):
        super().__init__(f"metadata not found for '{entity_id}' type '{record_type}'")
        self.entity_id = entity_id
        self.record_type = record_type


class MetadataStoreError(FilmSyncError):
    """Raised when the metadata store cannot be read or written."""


class RemoteStoreError(FilmSyncError):
    """Raised when listing or downloading from Google Drive fails."""


class BackendError(FilmSyncError):
    """Raised when a WordPress API call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EntityProcessingError(FilmSyncError):
    """Raised when a single film cannot be processed."""
