"""Storage layer.

In-memory only; one repository per vehicle stream.
"""

from pytelesim.storage.repository import InMemoryTelemetryRepository, decode_cursor, encode_cursor

__all__ = ["InMemoryTelemetryRepository", "decode_cursor", "encode_cursor"]
