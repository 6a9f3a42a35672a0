"""JSON response envelopes: `{data: ...}` for success, `{data: [...], meta}` for pages.

Errors use the separate `{error: {code, message}}` shape built in
`scan2go.core.exceptions`.
"""


import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from scan2go.core.pagination import PageMeta, PaginationParams

T = TypeVar("T")

_ENVELOPE_CONFIG = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class DataResponse(BaseModel, Generic[T]):
    data: T

    model_config = _ENVELOPE_CONFIG


class ListResponse(BaseModel, Generic[T]):
    data: list[T]
    meta: PageMeta

    model_config = _ENVELOPE_CONFIG


def paginated(items: list, total: int, params: PaginationParams) -> dict:
    """Build the payload for a ListResponse from one page of results."""
    return {
        "data": items,
        "meta": {
            "total": total,
            "page": params.page,
            "limit": params.limit,
            "pages": max(math.ceil(total / params.limit), 1),
        },
    }
