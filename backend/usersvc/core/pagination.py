"""Limit/offset arithmetic for paginated listings.

All functions are pure over ``(total, limit, offset)``. Links are rendered
relative to the request path so clients can follow them against whatever
host served the original request.
"""

from starlette.datastructures import URL, MultiDict, QueryParams

from usersvc.core.errors import NoNextPage, NoPrevPage


def next_limit_offset(total: int, limit: int, offset: int) -> tuple[int, int]:
    """Return the (limit, offset) of the page after the current one.

    A next page is reported whenever ``limit + offset <= total``, so the
    page following an exactly-filled last page is reported (and is empty).
    """
    if limit + offset <= total:
        return limit, offset + limit
    raise NoNextPage()


def prev_limit_offset(total: int, limit: int, offset: int) -> tuple[int, int]:
    """Return the (limit, offset) of the page before the current one."""
    if total > 0 and offset > 0:
        return limit, max(0, offset - limit)
    raise NoPrevPage()


def append_limit_offset(params: QueryParams | MultiDict, limit: int, offset: int) -> MultiDict:
    """Copy ``params`` with ``limit`` and ``offset`` replaced, keeping the rest."""
    values = MultiDict(params)
    values["limit"] = str(limit)
    values["offset"] = str(offset)
    return values


def _link(url: URL, params: MultiDict) -> str:
    return f"{url.path}?{QueryParams(params)}"


def page_links(url: URL, total: int, limit: int, offset: int) -> tuple[str, str]:
    """Render (previous, next) links for a page. Missing pages render as ``""``."""
    params = QueryParams(url.query)
    previous = next_ = ""
    try:
        prev_limit, prev_offset = prev_limit_offset(total, limit, offset)
        previous = _link(url, append_limit_offset(params, prev_limit, prev_offset))
    except NoPrevPage:
        pass
    try:
        next_limit, next_offset = next_limit_offset(total, limit, offset)
        next_ = _link(url, append_limit_offset(params, next_limit, next_offset))
    except NoNextPage:
        pass
    return previous, next_
