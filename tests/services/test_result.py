"""Tests for ServiceResult and ServiceError."""

import json

import pytest
from pydantic import ValidationError

from phasectl.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_construction(self) -> None:
        result = ServiceResult(ok=True, op="create_work_item", data={"id": "WI-0001"})
        assert result.ok is True
        assert result.op == "create_work_item"
        assert result.data == {"id": "WI-0001"}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None
        assert result.code is None

    def test_error_construction(self) -> None:
        error = ServiceError(code="NOT_FOUND", message="No work item")
        result = ServiceResult(ok=False, op="get_work_item", error=error)
        assert result.ok is False
        assert result.code == "NOT_FOUND"
        assert result.error is not None
        assert result.error.message == "No work item"

    def test_json_serialization(self) -> None:
        result = ServiceResult(ok=True, op="transition", data={"phase": "build"}, meta={"x": 1})
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is True
        assert parsed["op"] == "transition"
        assert parsed["data"]["phase"] == "build"
        assert parsed["meta"]["x"] == 1

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="test")
        with pytest.raises(ValidationError):
            result.ok = False  # type: ignore[misc]


class TestServiceError:
    def test_with_detail(self) -> None:
        error = ServiceError(
            code="FIELD_LOCKED",
            message="Fields not editable",
            detail={"fields": ["actual_hours"]},
        )
        assert error.detail["fields"] == ["actual_hours"]

    def test_default_detail(self) -> None:
        assert ServiceError(code="CONFLICT", message="bad").detail == {}
