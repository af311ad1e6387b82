from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .schemas import Envelope


def envelope_response(status_code: int, *, status: bool, message: str, data: Any = None) -> JSONResponse:
    """
    Render `{status, message, data}` with the given HTTP status.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    envelope = Envelope(status=status, message=message, data=data)
    return JSONResponse(status_code=status_code, content=envelope.model_dump(mode="json"))
