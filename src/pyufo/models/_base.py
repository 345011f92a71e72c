"""Base model for server-sent records.

Every model parsed from a reply inherits from :class:`UfoBaseModel` which
provides:

* ``frozen=True``: records are produced per reply and never mutated.
* ``extra="ignore"``: producers may add fields older clients do not know.
* ``coerce_numbers_to_str``: ids and names written as numbers by loosely
  typed producers still validate as strings.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class UfoBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )
