import pytest

from dnspipe.errors import JointErrors


def test_build_empty_is_none():
    assert JointErrors().build() is None


def test_build_single_returns_that_error():
    errs = JointErrors()
    err = ValueError("a")
    errs.append(err)
    assert errs.build() is err


def test_build_many_returns_collection():
    errs = JointErrors()
    first, second = ValueError("a"), KeyError("b")
    errs.append(first)
    errs.append(second)
    built = errs.build()
    assert built is errs
    assert list(built) == [first, second]
    assert len(built) == 2


def test_string_form():
    errs = JointErrors([ValueError("a"), ValueError("b")])
    assert str(errs) == "joint errors: #0: a #1: b"


def test_can_be_raised():
    errs = JointErrors([ValueError("a"), ValueError("b")])
    with pytest.raises(JointErrors) as info:
        raise errs.build()
    assert info.value.errors == errs.errors