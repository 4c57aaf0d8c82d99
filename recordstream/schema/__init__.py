"""Wire-level data model for streamed records.

Usage::

    from recordstream.schema import Record

    record = Record(id=1, name="Item 1", value=Decimal("12.50"), created_at=now)
"""

from recordstream.schema.record import Record

__all__ = ["Record"]
