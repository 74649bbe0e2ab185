"""Utility helpers package."""

from fluencyjet.utils.exceptions import (
    FluencyJetException,
    InvalidInputError,
    NotFoundError,
    PaywallError,
    StorageUnavailableError,
    register_exception_handlers,
)

__all__ = [
    "FluencyJetException",
    "InvalidInputError",
    "NotFoundError",
    "PaywallError",
    "StorageUnavailableError",
    "register_exception_handlers",
]
