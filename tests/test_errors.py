import pytest

from containerz.errors import StatusCode, StatusError


def test_attributes_are_kept():
    err = StatusError(StatusCode.NOT_FOUND, "image not found")
    assert err.code is StatusCode.NOT_FOUND
    assert err.message == "image not found"


def test_str_follows_rpc_error_format():
    err = StatusError(StatusCode.NOT_FOUND, "image not found")
    assert str(err) == "rpc error: code = NotFound desc = image not found"


def test_integer_code_is_converted():
    err = StatusError(int(StatusCode.UNAVAILABLE), "container running")
    assert err.code is StatusCode.UNAVAILABLE


def test_unknown_code_is_rejected():
    with pytest.raises(ValueError):
        StatusError(99, "bogus")


def test_equality_and_hash():
    first = StatusError(StatusCode.RESOURCE_EXHAUSTED, "not enough space to store image")
    second = StatusError(StatusCode.RESOURCE_EXHAUSTED, "not enough space to store image")
    assert first == second
    assert hash(first) == hash(second)
    assert first != StatusError(StatusCode.RESOURCE_EXHAUSTED, "other")
    assert first != StatusError(StatusCode.INTERNAL, "not enough space to store image")


def test_labels():
    exhausted = StatusError(StatusCode.RESOURCE_EXHAUSTED, "full")
    cancelled = StatusError(int(StatusCode.CANCELLED), "stopped")
    assert exhausted.code.label == "ResourceExhausted"
    assert cancelled.code.label == "Canceled"
    assert str(exhausted) == "rpc error: code = ResourceExhausted desc = full"
    assert str(cancelled) == "rpc error: code = Canceled desc = stopped"


def test_from_exception_direct():
    err = StatusError(StatusCode.UNAVAILABLE, "container running")
    assert StatusError.from_exception(err) is err


def test_from_exception_follows_cause():
    inner = StatusError(StatusCode.NOT_FOUND, "plugin test not found")
    try:
        try:
            raise inner
        except StatusError as exc:
            raise RuntimeError("unable to remove plugin") from exc
    except RuntimeError as outer:
        assert StatusError.from_exception(outer) is inner


def test_from_exception_plain_error_is_none():
    assert StatusError.from_exception(RuntimeError("boom")) is None
    assert StatusError.from_exception(None) is None


def test_can_be_raised_and_caught_by_code():
    err = StatusError(int(StatusCode.INVALID_ARGUMENT), "too much data received")
    with pytest.raises(StatusError) as info:
        raise err
    assert info.value is err
    assert info.value.code is StatusCode.INVALID_ARGUMENT
    assert info.value.message == "too much data received"
    assert str(info.value) == "rpc error: code = InvalidArgument desc = too much data received"