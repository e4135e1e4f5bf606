# catalog/decoding.py

"""Request body decoding.

Turns raw request bytes into a populated Pydantic model, classifying every
failure into one of the ``DecodeError`` subclasses so the client gets a
message that says what was wrong with the body.
"""

from __future__ import annotations

import json
import re
from typing import Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from .errors import (
    BodyTooLargeError,
    EmptyBodyError,
    InvalidTargetError,
    MalformedJSONError,
    TrailingDataError,
    TypeMismatchError,
    UnknownFieldError,
)

MAX_BODY_BYTES = 1_048_576

ModelT = TypeVar("ModelT", bound=BaseModel)

# Bare tokens outside string literals; NaN and Infinity are not JSON.
_CONSTANT_RE = re.compile(r'"(?:[^"\\]|\\.)*"|(-?Infinity|NaN)')


class _NonFiniteConstant(ValueError):
    pass


def _reject_constant(name):
    raise _NonFiniteConstant(name)


_decoder = json.JSONDecoder(parse_constant=_reject_constant)


async def read_body(request: Request) -> bytes:
    """
    Dependency that reads the raw request body, giving up as soon as more
    than MAX_BODY_BYTES have arrived.
    """
    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > MAX_BODY_BYTES:
            raise BodyTooLargeError(MAX_BODY_BYTES)
        chunks.append(chunk)
    return b"".join(chunks)


def read_json(body: bytes, target: Type[ModelT]) -> ModelT:
    """
    Decode ``body`` into an instance of ``target``.

    Failures are reported in this order: oversized body, empty body, invalid
    JSON, wrong JSON type for a field, unknown key, trailing data.
    """
    if not (isinstance(target, type) and issubclass(target, BaseModel)):
        raise InvalidTargetError(f"cannot decode JSON into {target!r}")

    if len(body) > MAX_BODY_BYTES:
        raise BodyTooLargeError(MAX_BODY_BYTES)

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedJSONError(exc.start) from exc

    start = len(text) - len(text.lstrip())
    if start == len(text):
        raise EmptyBodyError()

    try:
        value, end = _decoder.raw_decode(text, start)
    except json.JSONDecodeError as exc:
        # Running out of input mid-value has no meaningful offset.
        if exc.pos >= len(text.rstrip()) or exc.msg.startswith("Unterminated string"):
            raise MalformedJSONError() from exc
        raise MalformedJSONError(exc.pos) from exc
    except _NonFiniteConstant as exc:
        raise MalformedJSONError(_constant_offset(text, start)) from exc

    instance = _populate(target, value, end)

    if text[end:].strip():
        raise TrailingDataError()

    return instance


def _constant_offset(text, start):
    # Everything before the constant decoded cleanly, so string literals are
    # well formed and the first bare match is the rejected token.
    for match in _CONSTANT_RE.finditer(text, start):
        if match.group(1):
            return match.start(1)
    return None


def _populate(target, value, end):
    # An explicit null leaves the field at its default.
    if isinstance(value, dict):
        value = {
            key: item
            for key, item in value.items()
            if not (item is None and key in target.model_fields)
        }

    try:
        return target.model_validate(value)
    except ValidationError as exc:
        errors = exc.errors()
        for error in errors:
            if error["type"] != "extra_forbidden":
                field = _field_name(error["loc"])
                # An empty loc means the top-level value itself has the wrong
                # type, and it ends at `end`.
                raise TypeMismatchError(field or None, end) from exc
        raise UnknownFieldError(_field_name(errors[0]["loc"])) from exc


def _field_name(loc) -> str:
    return ".".join(str(part) for part in loc)
