"""
Adapters between the domain model and the persisted store format.

This package contains the converters that keep the repository layer free of
knowledge about legacy record shapes.
"""

from .record_converter import RecordFormatError, record_from_dict, record_to_dict

__all__ = ["RecordFormatError", "record_from_dict", "record_to_dict"]
