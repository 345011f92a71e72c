"""State layer.

Holds the reactive key/value store written by ``dataset`` instructions and
read by application code and localisation lookups.
"""

from pyufo.state.store import DataStore

__all__ = ["DataStore"]
