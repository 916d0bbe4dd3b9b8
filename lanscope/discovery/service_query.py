"""Defines ServiceQuery, the application's description of wanted services."""

import dataclasses
import re
from typing import Dict, Optional, Pattern


@dataclasses.dataclass(frozen=True)
class ServiceQuery:
    """A query for services of a single mDNS type.

    `type` selects what is browsed for. `name`, `port` and `properties` are
    optional and OR-ed together when matching a discovered record; a query
    with none of them set matches every record of `type`.
    """

    type: str
    name: Optional[str] = None
    port: Optional[int] = None
    properties: Optional[Dict[str, str]] = None
    _name_regex: Optional[Pattern[str]] = dataclasses.field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not isinstance(self.type, str) or not self.type:
            raise ValueError(
                f"ServiceQuery.type must be a non-empty str, got {self.type!r}."
            )
        if self.port is not None and not isinstance(self.port, int):
            raise TypeError(
                f"ServiceQuery.port must be int or None, got {type(self.port).__name__}."
            )
        # Compiled once here so a bad pattern fails at construction.
        if self.name:
            object.__setattr__(self, "_name_regex", re.compile(self.name))

    @property
    def name_regex(self) -> Optional[Pattern[str]]:
        """The compiled `name` pattern, or None when no name was given."""
        return self._name_regex
