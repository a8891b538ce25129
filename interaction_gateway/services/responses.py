"""Interaction response construction (JSON and multipart)."""

import json
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import httpx
from fastapi.responses import JSONResponse
from starlette.responses import Response

from ..schemas.discord import InteractionResponseType
from ..schemas.handlers import File

MessageOptions = Union[str, Dict[str, Any]]


def normalize_message(options: MessageOptions) -> Dict[str, Any]:
    """Turn a bare string into a message payload."""
    if isinstance(options, str):
        return {"content": options}
    return dict(options)


def multipart_fields(
    payload: Dict[str, Any],
    files: Sequence[File]
) -> Tuple[Dict[str, str], List[Tuple[str, Tuple[str, bytes, str]]]]:
    """Split a message into the ``payload_json`` form field and one part per file.

    Parts are named ``files[i]`` unless the file carries its own key.
    """
    parts = []
    for index, file in enumerate(files):
        data = file.data.encode("utf-8") if isinstance(file.data, str) else file.data
        parts.append((file.key or f"files[{index}]", (file.name, data, file.content_type)))
    return {"payload_json": json.dumps(payload)}, parts


def encode_multipart(
    payload: Dict[str, Any],
    files: Sequence[File]
) -> Tuple[bytes, str]:
    """Encode ``payload_json`` plus one part per file.

    Returns the body and its Content-Type (which carries the boundary).
    """
    data, parts = multipart_fields(payload, files)
    request = httpx.Request("POST", "http://localhost/", data=data, files=parts)
    return request.read(), request.headers["content-type"]


def interaction_response(
    response_type: InteractionResponseType,
    data: Optional[Dict[str, Any]] = None,
    files: Optional[Sequence[File]] = None
) -> Response:
    """Build the HTTP response for an interaction callback."""
    payload: Dict[str, Any] = {"type": int(response_type)}
    if data is not None:
        payload["data"] = data

    if not files:
        return JSONResponse(content=payload)

    body, content_type = encode_multipart(payload, files)
    return Response(content=body, headers={"content-type": content_type})


def bad_request(error: str = "Bad Request") -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": error})
