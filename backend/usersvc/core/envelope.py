"""Uniform JSON envelope used for every response of the service.

Success::

    {"data": ..., "meta": {"status": 200, "previous": "...", "next": "...", "total": 42}}

Failure::

    {"meta": {"status": 404, "error": "user: not found"}}

Optional ``meta`` fields are omitted when empty or zero.
"""

from typing import Any, Protocol, runtime_checkable

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from usersvc.core.errors import code_from, root_cause


class EnvelopeResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"


@runtime_checkable
class Errorer(Protocol):
    """A result that may carry a business-logic error instead of data."""

    def error(self) -> BaseException | None: ...


@runtime_checkable
class Statuser(Protocol):
    """A result that declares its own success status code."""

    def status(self) -> int: ...


@runtime_checkable
class Pager(Protocol):
    """A result that is one page of a larger collection."""

    def page(self) -> tuple[int, str, str]: ...


def _meta(
    code: int,
    error: str = "",
    previous: str = "",
    next_: str = "",
    total: int = 0,
) -> dict:
    meta: dict = {"status": code}
    if error:
        meta["error"] = error
    if previous:
        meta["previous"] = previous
    if next_:
        meta["next"] = next_
    if total:
        meta["total"] = total
    return meta


def _data(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return jsonable_encoder(value)


def encode_response(value: Any) -> EnvelopeResponse:
    """Wrap a successful result, or route an embedded error to ``encode_error``."""
    if isinstance(value, Errorer):
        err = value.error()
        if err is not None:
            return encode_error(err)

    code = status.HTTP_200_OK
    if isinstance(value, Statuser) and value.status():
        code = value.status()

    total, previous, next_ = 0, "", ""
    if isinstance(value, Pager):
        total, previous, next_ = value.page()

    body: dict = {}
    data = _data(value)
    if data is not None:
        body["data"] = data
    body["meta"] = _meta(code, previous=previous, next_=next_, total=total)
    return EnvelopeResponse(content=body, status_code=code)


def encode_error(exc: BaseException | None) -> EnvelopeResponse:
    """Render an error. The status comes from the root cause, the message
    from the outermost error so wrapping context stays visible."""
    if exc is None:
        raise RuntimeError("encode_error with nil error")
    code = code_from(root_cause(exc))
    body = {"meta": _meta(code, error=str(exc))}
    return EnvelopeResponse(content=body, status_code=code)
