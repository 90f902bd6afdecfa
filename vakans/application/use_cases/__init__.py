"""Aggregate application use cases."""

from .users import authenticate_user, create_user, record_activity

__all__ = [
    "authenticate_user",
    "create_user",
    "record_activity",
]
