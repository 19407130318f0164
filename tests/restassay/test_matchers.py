import pytest

from restassay import ResponseBuilder, matchers
from restassay.matchers import (
    all_of,
    any_of,
    contains_string,
    describe_value,
    empty,
    ends_with,
    equal_to,
    equal_to_ignoring_case,
    equal_to_path,
    greater_than,
    has_item,
    has_items,
    has_size,
    instance_of,
    is_,
    less_than_or_equal_to,
    none,
    not_,
    not_none,
    resolve,
    starts_with,
    starts_with_path,
    wrap,
)


def test_describe_value():
    assert describe_value(None) == "null"
    assert describe_value("jux") == '"jux"'
    assert describe_value(202) == "<202>"
    assert describe_value([1, "a"]) == '[<1>, "a"]'
    assert describe_value(True) == "<true>"
    assert describe_value([False]) == "[<false>]"


@pytest.mark.parametrize(
    "matcher,value,expected",
    [
        (equal_to(5), 5, True),
        (equal_to((1, 2)), [1, 2], True),
        (is_(5), 6, False),
        (not_(5), 6, True),
        (none(), None, True),
        (not_none(), None, False),
        (contains_string("eet"), "Greetings", True),
        (contains_string("eet"), 5, False),
        (starts_with("Gre"), "Greetings", True),
        (ends_with("ings"), "Greeting", False),
        (equal_to_ignoring_case("GREETINGS"), "greetings", True),
        (greater_than(3), 4, True),
        (greater_than(3), None, False),
        (greater_than(3), "x", False),
        (less_than_or_equal_to(3), 3, True),
        (has_item(23), [2, 23], True),
        (has_item(23), "23", False),
        (has_items(2, 3), [1, 2, 3], True),
        (has_items(2, 4), [1, 2, 3], False),
        (has_size(2), [1, 2], True),
        (has_size(greater_than(1)), "ab", True),
        (empty(), [], True),
        (instance_of(int), 1, True),
        (all_of(starts_with("a"), ends_with("z")), "abcz", True),
        (any_of(1, 2), 3, False),
    ],
)
def test_matches(matcher, value, expected):
    assert matcher.matches(value) is expected


def test_descriptions():
    assert equal_to("jux").describe() == '"jux"'
    assert is_(5).describe() == "is <5>"
    assert not_("a").describe() == 'not "a"'
    assert not_none().describe() == "not null"
    assert contains_string("x").describe() == 'a string containing "x"'
    assert greater_than(3).describe() == "a value greater than <3>"
    assert has_item("a").describe() == 'a collection containing "a"'
    assert all_of(1, 2).describe() == "(<1> and <2>)"
    assert any_of(1, 2).describe() == "(<1> or <2>)"
    assert str(has_size(0)) == "a collection with size <0>"


def test_wrap_accepts_duck_typed_matchers():
    class Even:
        def matches(self, value):
            return value % 2 == 0

        def describe(self):
            return "an even number"

    matcher = wrap(Even())
    assert isinstance(matcher, matchers.Matcher)
    assert matcher.matches(4)
    assert matcher.describe() == "an even number"


def test_plain_values_wrap_to_equality():
    matcher = wrap("x")
    assert isinstance(matcher, matchers.EqualTo)
    assert wrap(matcher) is matcher


def test_response_aware_matchers():
    response = (
        ResponseBuilder()
        .body({"first": "John", "greeting": "John Doe", "copy": "John"})
        .build()
    )
    assert resolve(equal_to_path("first"), response).matches("John")
    assert resolve(starts_with_path("first"), response).matches("John Doe")
    assert not resolve(equal_to_path("greeting"), response).matches("John")


def test_response_aware_matchers_cannot_be_nested():
    with pytest.raises(TypeError):
        not_(equal_to_path("first"))
