from __future__ import annotations

import re
import uuid
from contextvars import ContextVar


_request_id: ContextVar[str] = ContextVar("request_id", default="")

# Inbound ids are echoed back in headers and logs, so keep them short and plain.
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._\-]{1,128}$")


def set_request_id(value: str | None = None) -> str:
    if value and _VALID_REQUEST_ID.match(value.strip()):
        request_id = value.strip()
    else:
        request_id = uuid.uuid4().hex
    _request_id.set(request_id)
    return request_id


def get_request_id() -> str:
    return _request_id.get()
