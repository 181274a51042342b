"""
URL parameter serialization for SearchQuery.

Every SearchQuery key with a defined, non-empty value becomes a URL
parameter under its camelCase wire name, so search state is deep-linkable:

    /search?q=phone&brand=Acme&minPrice=100.0&page=2&limit=20&sortBy=price&sortOrder=desc

The specification selection travels as one compact JSON parameter.
Parsing the parameters reconstructs an equal SearchQuery.
"""

import json
from typing import Any, Dict, Iterable, Mapping, Tuple, Union
from urllib.parse import parse_qsl, urlencode, urlsplit

from pydantic import ValidationError

from core.logging import get_logger
from core.utils import is_empty_value
from search.models import SearchQuery

logger = get_logger(__name__)

SPECIFICATIONS_PARAM = "specifications"

ParamSource = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def to_params(query: SearchQuery) -> Dict[str, str]:
    """
    Serialize a query to URL parameters (wire names, string values).

    Unset and empty values are omitted.
    """
    dumped = query.model_dump(mode="json", by_alias=True, exclude_none=True)
    return {
        key: _format_param(value)
        for key, value in dumped.items()
        if not is_empty_value(value)
    }


def _last_values(params: ParamSource) -> Dict[str, Any]:
    """Collapse repeated keys (last one wins) and list values."""
    items = params.items() if isinstance(params, Mapping) else params
    collapsed: Dict[str, Any] = {}
    for key, value in items:
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = value[-1]
        collapsed[key] = value
    return collapsed


def _parse_specifications(raw: Any) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed specifications parameter", value=raw[:200])
        return None


def from_params(params: ParamSource) -> SearchQuery:
    """
    Rebuild a SearchQuery from URL parameters.

    Parameters that fail validation are dropped (a deep link with a bad
    ``page=abc`` still restores the rest of the search) and logged.

    Raises:
        ValidationError: if the query is invalid as a whole and no single
            parameter can be blamed.
    """
    data = _last_values(params)
    if SPECIFICATIONS_PARAM in data:
        parsed = _parse_specifications(data[SPECIFICATIONS_PARAM])
        if parsed is None:
            data.pop(SPECIFICATIONS_PARAM)
        else:
            data[SPECIFICATIONS_PARAM] = parsed

    while True:
        try:
            return SearchQuery.model_validate(data)
        except ValidationError as e:
            bad_keys = {err["loc"][0] for err in e.errors() if err["loc"]} & set(data)
            if not bad_keys:
                raise
            logger.warning("Dropping invalid search parameters", params=sorted(bad_keys))
            for key in bad_keys:
                data.pop(key)


def to_query_string(query: SearchQuery) -> str:
    """Encoded query string without the leading '?'."""
    return urlencode(to_params(query))


def from_query_string(query_string: str) -> SearchQuery:
    """Parse an encoded query string (leading '?' allowed)."""
    return from_params(parse_qsl(query_string.lstrip("?"), keep_blank_values=False))


def build_search_url(query: SearchQuery, path: str = "/search") -> str:
    """Bookmarkable URL for a search."""
    query_string = to_query_string(query)
    return f"{path}?{query_string}" if query_string else path


def parse_search_url(url: str) -> SearchQuery:
    """Parse the query part of a search URL."""
    return from_query_string(urlsplit(url).query)
