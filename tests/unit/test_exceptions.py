"""Unit tests for the error taxonomy and its HTTP rendering."""

import json

import pytest
from pydantic import BaseModel, ValidationError

from interaction_gateway.core.exceptions import (
    MESSAGES,
    AuthenticationError,
    ErrorCode,
    InvalidPayloadError,
    RoutingMissError,
    error_response,
)
from interaction_gateway.core.middleware import request_id_context


def test_authentication_error_is_plain_text_401():
    exc = AuthenticationError()

    response = error_response(exc)

    assert response.status_code == 401
    assert response.body == b"Bad request signature"
    assert response.headers["X-Correlation-ID"] == exc.correlation_id


def test_routing_miss_is_bad_request_json():
    exc = RoutingMissError("button", 7)

    response = error_response(exc)
    content = json.loads(response.body)

    assert response.status_code == 400
    assert content["error"] == "Bad Request"
    assert content["correlation_id"] == exc.correlation_id
    assert content["details"]["kind"] == "button"


def test_invalid_payload_without_details():
    content = json.loads(error_response(InvalidPayloadError("no data")).body)

    assert content["message"] == "Invalid interaction payload: no data"
    assert "details" not in content


def test_each_exception_gets_its_own_correlation_id():
    assert AuthenticationError().correlation_id != AuthenticationError().correlation_id


def test_exception_reuses_request_correlation_id():
    token = request_id_context.set("req-123")
    try:
        exc = InvalidPayloadError("no data")
    finally:
        request_id_context.reset(token)

    assert exc.correlation_id == "req-123"


def test_invalid_payload_from_validation_error():
    class Shape(BaseModel):
        custom_id: str

    with pytest.raises(ValidationError) as excinfo:
        Shape.model_validate({"custom_id": 7})

    exc = InvalidPayloadError.from_validation_error("bad component data", excinfo.value)

    assert exc.status_code == 400
    assert exc.message == "Invalid interaction payload: bad component data"
    assert exc.details["errors"][0].startswith("custom_id: ")


def test_every_error_code_has_a_message():
    assert set(MESSAGES) == set(ErrorCode)
