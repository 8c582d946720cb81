import pytest

from flexlog.result import Error, Result, ResultError, err, ok


def test_ok_holds_value():
    result = ok(5)
    assert result.has_value()
    assert not result.has_error()
    assert bool(result) is True
    assert result.value() == 5
    assert result.unwrap() == 5


def test_void_ok():
    result = ok()
    assert result.has_value()
    assert result.value() is None


def test_err_holds_error():
    result = err(3, "bad thing")
    assert result.has_error()
    assert bool(result) is False
    assert result.error().code == 3
    assert result.error().message == "bad thing"


def test_err_records_caller_file():
    result = err(1, "x")
    assert result.error().file == __file__
    assert result.error().line > 0


def test_value_on_error_raises():
    result = err(4, "nope")
    with pytest.raises(ResultError) as info:
        result.value()
    assert info.value.error.code == 4
    with pytest.raises(ResultError):
        result.unwrap()


def test_error_on_value_raises():
    with pytest.raises(ResultError) as info:
        ok(1).error()
    assert info.value.error.code == 0
    assert info.value.error.message == "Attempted to access error when result has value"


def test_expect_uses_new_message_and_old_code():
    with pytest.raises(ResultError) as info:
        err(9, "original").expect("replacement")
    assert info.value.error.code == 9
    assert info.value.error.message == "replacement"
    assert ok("v").expect("unused") == "v"


def test_formatted_message():
    error = Error(7, "boom", "f.py", 3, 4)
    assert error.formatted_message() == "Error 7: boom [f.py:3:4]"
    assert str(ResultError(error)) == error.formatted_message()


def test_error_equality_uses_code_only():
    assert Error(2, "a", "x", 1, 1) == Error(2, "b", "y", 5, 5)
    assert not Error(2, "a", "x", 1, 1) == Error(3, "a", "x", 1, 1)


def test_value_or_and_try_accessors():
    assert ok(10).value_or(20) == 10
    assert err(1, "e").value_or(20) == 20
    assert ok(10).try_value() == 10
    assert ok(10).try_error() is None
    failure = err(1, "e")
    assert failure.try_value() is None
    assert failure.try_error().code == 1


def test_and_then_chains_and_short_circuits():
    assert ok(2).and_then(lambda v: ok(v * 10)).value() == 20
    failure = err(5, "stop")
    calls = []
    chained = failure.and_then(lambda v: calls.append(v) or ok(v))
    assert chained.error().code == 5
    assert calls == []


def test_or_else():
    recovered = err(1, "e").or_else(lambda e: ok(e.code + 100))
    assert recovered.value() == 101
    success = ok(3)
    assert success.or_else(lambda e: ok(0)) is success


def test_map_and_map_error():
    assert ok(3).map(str).value() == "3"
    assert err(2, "e").map(str).error().code == 2
    mapped = err(2, "e").map_error(lambda e: Error(e.code + 1, e.message, "", 0, 0))
    assert mapped.error().code == 3
    assert ok(4).map_error(lambda e: e).value() == 4


def test_inspect_and_inspect_error():
    seen = []
    success = ok(8)
    assert success.inspect(seen.append) is success
    success.inspect_error(seen.append)
    assert seen == [8]
    failure = err(6, "e")
    failure.inspect(seen.append)
    failure.inspect_error(lambda e: seen.append(e.code))
    assert seen == [8, 6]


def test_match():
    assert ok(2).match(lambda v: v + 1, lambda e: -1) == 3
    assert err(2, "e").match(lambda v: v + 1, lambda e: -e.code) == -2


def test_transpose():
    assert ok(None).transpose() is None
    assert ok(5).transpose().value() == 5
    assert err(4, "e").transpose().error().code == 4


def test_flatten():
    assert ok(ok(1)).flatten().value() == 1
    assert ok(err(3, "inner")).flatten().error().code == 3
    assert err(2, "outer").flatten().error().code == 2
    with pytest.raises(TypeError):
        ok(1).flatten()


def test_tuple_unpacking():
    has, value, error = ok("x")
    assert (has, value, error) == (True, "x", None)
    has, value, error = err(1, "e")
    assert has is False and value is None and error.code == 1


def test_error_result_with_custom_error_type():
    result = Result(error="plain")
    with pytest.raises(ResultError) as info:
        result.value()
    assert info.value.error == "plain"