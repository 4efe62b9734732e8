"""Builders for storage drivers."""

from .remote import create_driver_from_section

__all__ = ["create_driver_from_section"]
