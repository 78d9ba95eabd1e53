# bookmarket/errors.py
"""Error taxonomy shared by the stores, the catalog and the HTTP layer."""

from typing import Dict, List, Optional


class BookMarketError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookMarketError):
    """Malformed or missing input, rejected before anything is persisted."""

    status_code = 400

    def __init__(self, message: str, field_errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.field_errors = field_errors or {}


class NotFoundError(BookMarketError):
    status_code = 404


class StorageError(BookMarketError):
    """The durable representation could not be read or written."""

    status_code = 500


class UploadError(BookMarketError):
    status_code = 400
