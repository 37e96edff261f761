"""
Record Book

Constraint-checked entity records (books, persons, movies) with
segmented single-table inheritance, kept in whole-table key-value
storage.
"""

from .session import RecordBook, create_record_book

__all__ = ["RecordBook", "create_record_book"]
