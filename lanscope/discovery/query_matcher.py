"""Checks discovered service records against an application's query."""

from lanscope.discovery.service_query import ServiceQuery
from lanscope.discovery.service_record import ServiceRecord


def matches(query: ServiceQuery, record: ServiceRecord) -> bool:
    """Returns True if |record| satisfies |query|.

    The populated query fields are OR-ed: a name pattern found in the record
    name, an equal port, or any one equal property value is enough. A query
    with no name, port or properties only constrains the type, which the
    browser has already filtered on, so it matches everything.
    """
    name_regex = query.name_regex
    if name_regex is not None and record.name:
        if name_regex.search(record.name):
            return True

    if query.port is not None and record.port is not None:
        if query.port == record.port:
            return True

    if query.properties and record.properties:
        for key, value in query.properties.items():
            if key in record.properties and record.properties[key] == value:
                return True

    if name_regex is None and query.port is None and not query.properties:
        return True

    return False
