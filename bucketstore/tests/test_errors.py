"""
Unit Tests: Error Taxonomy and Result Monad

Tests:
    - Factory constructors carry key/bucket context
    - Error codes per class
    - StorageNotFound is a TransportError
    - Ok/Err combinators
"""

import pytest

from bucketstore.core.errors import (
    BucketError,
    ErrorCode,
    ExistingObject,
    InputError,
    MissingObject,
    PartialRenameFailure,
    StorageNotFound,
    TransportError,
)
from bucketstore.core.types import Err, Ok


class TestPreconditionErrors:
    """Tests for MissingObject / ExistingObject."""

    def test_missing_object(self):
        err = MissingObject.for_key("a.txt", "media")
        assert err.code == ErrorCode.OBJECT_MISSING
        assert err.key == "a.txt"
        assert err.bucket == "media"
        assert "a.txt" in err.message

    def test_existing_object(self):
        err = ExistingObject.for_key("a.txt", "media")
        assert err.code == ErrorCode.OBJECT_EXISTS
        assert err.key == "a.txt"
        assert err.bucket == "media"

    def test_is_exception(self):
        with pytest.raises(BucketError):
            raise MissingObject.for_key("a", "b")


class TestPartialRenameFailure:
    """Tests for the half-completed rename error."""

    def test_fields(self):
        cause = TransportError.failed("delete_object", key="old")
        err = PartialRenameFailure.for_keys("old", "new", "media", cause=cause)

        assert err.code == ErrorCode.RENAME_PARTIAL
        assert err.old_key == "old"
        assert err.new_key == "new"
        assert err.bucket == "media"
        assert err.cause is cause


class TestTransportErrors:
    """Tests for transport classification."""

    def test_failed(self):
        cause = RuntimeError("boom")
        err = TransportError.failed("put_object", key="a", cause=cause)
        assert err.code == ErrorCode.TRANSPORT_FAILURE
        assert err.operation == "put_object"
        assert err.key == "a"
        assert err.cause is cause

    def test_not_connected(self):
        err = TransportError.not_connected("get_object")
        assert err.code == ErrorCode.TRANSPORT_NOT_CONNECTED
        assert err.key is None

    def test_not_found_is_transport_error(self):
        err = StorageNotFound.for_key("head_object", "a")
        assert isinstance(err, TransportError)
        assert err.code == ErrorCode.TRANSPORT_NOT_FOUND
        assert err.key == "a"


class TestErrorSerialization:
    """Tests for to_dict and with_context."""

    def test_to_dict(self):
        err = InputError.size_unknown("stdin")
        data = err.to_dict()
        assert data["code"] == "INPUT_SIZE_UNKNOWN"
        assert data["code_value"] == 2002
        assert data["context"] == {"source": "stdin"}
        assert data["error_id"] == err.error_id

    def test_with_context_keeps_class(self):
        err = MissingObject.for_key("a", "media").with_context(request="r1")
        assert isinstance(err, MissingObject)
        assert err.key == "a"
        assert err.context["request"] == "r1"

    def test_str_includes_code(self):
        assert "OBJECT_MISSING" in str(MissingObject.for_key("a", "b"))


class TestResult:
    """Tests for the Ok/Err monad."""

    def test_ok(self):
        result = Ok(2)
        assert result.is_ok()
        assert not result.is_err()
        assert result.unwrap() == 2
        assert result.map(lambda v: v * 3).unwrap() == 6

    def test_err(self):
        error = MissingObject.for_key("a", "b")
        result = Err(error)
        assert result.is_err()
        assert result.unwrap_or(7) == 7
        assert result.map(lambda v: v * 3) is result
        with pytest.raises(MissingObject):
            result.unwrap()

    def test_unwrap_non_exception(self):
        with pytest.raises(RuntimeError):
            Err("boom").unwrap()

    def test_flat_map(self):
        assert Ok(1).flat_map(lambda v: Ok(v + 1)).unwrap() == 2
        assert Ok(1).flat_map(lambda v: Err("no")).is_err()
