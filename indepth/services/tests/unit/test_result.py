"""Tests for ServiceResult.

Run with: uv run pytest indepth/services/tests/unit/test_result.py -v
"""

import pytest

from indepth.services.result import ResultAccessError, ServiceResult


@pytest.mark.unit
class TestServiceResult:
    def test_success_carries_data(self):
        result = ServiceResult.success("v1.1")

        assert result.is_success
        assert result.value == "v1.1"
        assert result.unwrap() == "v1.1"
        assert result.error_message is None

    def test_success_with_none_is_not_found(self):
        result = ServiceResult.success(None)

        assert result.is_success
        assert result.value is None

    def test_failure_carries_message_and_cause(self):
        cause = ConnectionError("db down")
        result = ServiceResult.failure("Could not read", cause)

        assert not result.is_success
        assert result.error == "Could not read"
        assert result.exception is cause
        # is_success is the only discriminator; a failure is still a truthy object
        assert result

    def test_reading_value_of_failure_raises(self):
        result = ServiceResult.failure("nope")

        with pytest.raises(ResultAccessError):
            _ = result.value
        with pytest.raises(ResultAccessError):
            result.unwrap()

    def test_reading_error_of_success_raises(self):
        with pytest.raises(ResultAccessError):
            _ = ServiceResult.success(1).error

    def test_result_is_immutable(self):
        result = ServiceResult.success(1)

        with pytest.raises(AttributeError):
            result.data = 2
