"""Tests for perch.finder — typed, validated parameter lookups."""

import re
from decimal import Decimal
from urllib.parse import urlencode

import pytest

from perch.errors import RequestError
from perch.finder import FindError, Finder, Found, error_key
from perch.http.params import Params, QueryParams


def _query(**values: str) -> QueryParams:
    return QueryParams(urlencode(values).encode())


class TestFound:
    def test_truthiness(self) -> None:
        assert Found("x")
        assert not Found("", FindError.EMPTY_STRING)

    def test_unpacking(self) -> None:
        value, err = Found(3, FindError.NOT_POSITIVE)
        assert value == 3
        assert err is FindError.NOT_POSITIVE

    def test_ok(self) -> None:
        assert Found(1).ok is True
        assert Found(0, FindError.WRONG_TYPE).ok is False


class TestChild:
    def test_navigates_maps_and_sequences(self) -> None:
        finder = Finder.from_bytes(b'{"photo": [{"name": "abc"}, {"id": 200}]}')
        assert finder.child("photo", 1, "id").value == 200

    def test_does_not_mutate_parent(self) -> None:
        finder = Finder.from_bytes(b'{"a": {"b": 1}}')
        child = finder.child("a")
        assert child.value == {"b": 1}
        assert finder.value == {"a": {"b": 1}}
        assert finder.child("a", "b").value == 1

    def test_string_on_non_map(self) -> None:
        finder = Finder.from_bytes(b'{"a": [1]}')
        assert finder.child("a", "b").error is FindError.WRONG_TYPE

    def test_int_on_non_sequence(self) -> None:
        finder = Finder.from_bytes(b'{"a": {"0": 1}}')
        assert finder.child("a", 0).error is FindError.WRONG_TYPE

    def test_index_out_of_bound(self) -> None:
        finder = Finder.from_bytes(b'{"a": [1, 2]}')
        assert finder.child("a", 2).error is FindError.INDEX_OUT_OF_BOUND
        assert finder.child("a", -1).error is FindError.INDEX_OUT_OF_BOUND

    def test_missing_key(self) -> None:
        finder = Finder.from_bytes(b'{"a": 1}')
        assert finder.child("f").error is FindError.ENTRY_NOT_EXISTS

    def test_null_value(self) -> None:
        finder = Finder.from_bytes(b'{"a": null}')
        assert finder.child("a").error is FindError.NULL_VALUE

    def test_null_root(self) -> None:
        assert Finder().child("a").error is FindError.NULL_VALUE
        assert Finder().child().error is FindError.NULL_VALUE

    def test_short_circuits(self) -> None:
        finder = Finder.from_bytes(b'{"a": 1}')
        failed = finder.child("missing")
        assert failed.child("x", 0).error is FindError.ENTRY_NOT_EXISTS

    def test_child_drops_form_source(self) -> None:
        finder = Finder.from_bytes(b'{"a": {"b": ""}}', form=_query(b="form"))
        assert finder.child("a").form is None

    @pytest.mark.parametrize("element", [1.5, None, True, b"a"])
    def test_rejects_other_element_types(self, element: object) -> None:
        finder = Finder.from_bytes(b'{"a": [1]}')
        with pytest.raises(TypeError):
            finder.child(element)  # type: ignore[arg-type]


class TestFindString:
    BODY = b'{"a": "", "b": null, "c": true, "d": 12, "e": "str"}'

    def _finder(self) -> Finder:
        return Finder.from_bytes(self.BODY, form=_query(e="E", o="O"))

    def test_empty_string(self) -> None:
        assert self._finder().find_string("a").error is FindError.EMPTY_STRING

    def test_null(self) -> None:
        assert self._finder().find_string("b").error is FindError.NULL_VALUE

    def test_wrong_type(self) -> None:
        assert self._finder().find_string("c").error is FindError.WRONG_TYPE
        assert self._finder().find_string("d").error is FindError.WRONG_TYPE

    def test_form_value_wins_over_body(self) -> None:
        assert self._finder().find_string("e") == Found("E")

    def test_missing(self) -> None:
        assert self._finder().find_string("f").error is FindError.ENTRY_NOT_EXISTS

    def test_form_only(self) -> None:
        assert self._finder().find_string("o") == Found("O")

    def test_empty_form_value_falls_through_to_body(self) -> None:
        finder = Finder.from_bytes(b'{"k": "body"}', form=_query(k=""))
        assert finder.find_string("k") == Found("body")

    def test_form_ignored_for_nested_paths(self) -> None:
        finder = Finder.from_bytes(b'{"e": {"x": "nested"}}', form=_query(x="form"))
        assert finder.find_string("e", "x") == Found("nested")

    def test_failure_value_is_empty(self) -> None:
        assert self._finder().find_string("c").value == ""


class TestFindInt:
    def test_from_query(self) -> None:
        finder = Finder(form=_query(a="1", b="2"))
        assert finder.require_int("a") == 1
        assert finder.require_int("b") == 2

    def test_from_body(self) -> None:
        finder = Finder.from_bytes(b'{"chars": ["a", "b", "c"], "obj": {"x": 100}}')
        assert finder.require_string("chars", 1) == "b"
        assert finder.require_int("obj", "x") == 100

    def test_unparseable_form_value(self) -> None:
        finder = Finder(form=_query(a="1.5"))
        assert finder.find_int("a") == Found(0, FindError.WRONG_TYPE)

    def test_bool_is_not_int(self) -> None:
        finder = Finder.from_bytes(b'{"a": true}')
        assert finder.find_int("a").error is FindError.WRONG_TYPE

    def test_fractional_json_number_is_not_int(self) -> None:
        finder = Finder.from_bytes(b'{"a": 1.0, "b": 1e2}')
        assert finder.find_int("a").error is FindError.WRONG_TYPE
        assert finder.find_int("b").error is FindError.WRONG_TYPE

    def test_out_of_int64_range(self) -> None:
        finder = Finder.from_bytes(b'{"a": 9223372036854775808}')
        assert finder.find_int("a").error is FindError.WRONG_TYPE

    def test_large_int_is_exact(self) -> None:
        finder = Finder.from_bytes(b'{"a": 9223372036854775807}')
        assert finder.find_int("a") == Found(9223372036854775807)

    def test_oversized_form_value(self) -> None:
        finder = Finder(form=_query(a="9" * 5000))
        assert finder.find_int("a").error is FindError.WRONG_TYPE
        with pytest.raises(RequestError) as exc_info:
            finder.require_int("a")
        assert exc_info.value.message == "aInvalid"


class TestFindFloat:
    def test_accepts_int_and_decimal(self) -> None:
        finder = Finder.from_bytes(b'{"a": 2, "b": 2.5}')
        assert finder.find_float("a") == Found(2.0)
        assert finder.find_float("b") == Found(2.5)

    def test_from_form(self) -> None:
        finder = Finder(form=_query(a="-0.25"))
        assert finder.find_float("a") == Found(-0.25)

    def test_unparseable_form_value(self) -> None:
        finder = Finder(form=_query(a="1,5"))
        assert finder.find_float("a").error is FindError.WRONG_TYPE

    def test_overflowing_decimal(self) -> None:
        finder = Finder(value={"a": Decimal("1e400")})
        assert finder.find_float("a").error is FindError.WRONG_TYPE

    def test_overflowing_int(self) -> None:
        finder = Finder.from_bytes(b'{"a": 1' + b"0" * 400 + b"}")
        assert finder.find_float("a").error is FindError.WRONG_TYPE
        with pytest.raises(RequestError) as exc_info:
            finder.require_float("a")
        assert exc_info.value.message == "aInvalid"
        assert exc_info.value.status == 400

    def test_string_is_wrong_type(self) -> None:
        finder = Finder.from_bytes(b'{"a": "1.5"}')
        assert finder.find_float("a").error is FindError.WRONG_TYPE


class TestFindBool:
    def test_from_body(self) -> None:
        finder = Finder.from_bytes(b'{"a": false}')
        assert finder.find_bool("a") == Found(False)

    def test_from_form(self) -> None:
        finder = Finder(form=_query(a="t", b="0", c="yes"))
        assert finder.find_bool("a") == Found(True)
        assert finder.find_bool("b") == Found(False)
        assert finder.find_bool("c").error is FindError.WRONG_TYPE

    def test_int_is_not_bool(self) -> None:
        finder = Finder.from_bytes(b'{"a": 1}')
        assert finder.find_bool("a").error is FindError.WRONG_TYPE


class TestFindSliceAndMap:
    def test_slice(self) -> None:
        finder = Finder.from_bytes(b'{"a": [1, 2], "b": [], "c": {}}')
        assert finder.find_slice("a") == Found([1, 2])
        assert finder.find_slice("b") == Found([], FindError.EMPTY_SLICE)
        assert finder.find_slice("c") == Found([], FindError.WRONG_TYPE)

    def test_map(self) -> None:
        finder = Finder.from_bytes(b'{"a": {"x": 1}, "b": {}, "c": []}')
        assert finder.find_map("a") == Found({"x": 1})
        assert finder.find_map("b") == Found({}, FindError.EMPTY_MAP)
        assert finder.find_map("c") == Found({}, FindError.WRONG_TYPE)

    def test_form_not_consulted(self) -> None:
        finder = Finder(form=_query(a="1"))
        assert finder.find_slice("a").error is FindError.NULL_VALUE
        assert finder.find_map("a").error is FindError.NULL_VALUE


class TestLength:
    def test_sequence_and_map(self) -> None:
        finder = Finder.from_bytes(b'{"a": [1, 2, 3], "b": {"x": 1}, "c": "str"}')
        assert finder.length("a") == 3
        assert finder.length("b") == 1
        assert finder.length() == 3

    def test_scalar_or_missing(self) -> None:
        finder = Finder.from_bytes(b'{"c": "str"}')
        assert finder.length("c") == -1
        assert finder.length("missing") == -1


class TestStringLength:
    def _finder(self) -> Finder:
        return Finder(form=_query(a="1234567", b="语言文字"))

    def test_min_inclusive_max_exclusive(self) -> None:
        finder = self._finder()
        assert finder.find_string_len(8, 10, "a").error is FindError.TOO_SHORT
        assert finder.find_string_len(3, 7, "a").error is FindError.TOO_LONG
        assert finder.find_string_len(7, 10, "a") == Found("1234567")

    def test_rune_length(self) -> None:
        finder = self._finder()
        assert finder.find_string_rune_len(5, 8, "b").error is FindError.TOO_SHORT
        assert finder.find_string_rune_len(1, 4, "b").error is FindError.TOO_LONG
        assert finder.find_string_rune_len(2, 6, "b") == Found("语言文字")

    def test_byte_length_counts_utf8(self) -> None:
        # 4 characters, 12 bytes
        assert self._finder().find_string_len(12, 13, "b") == Found("语言文字")

    def test_require_messages(self) -> None:
        finder = self._finder()
        with pytest.raises(RequestError) as exc_info:
            finder.require_string_len(8, 10, "a")
        assert exc_info.value.message == "aTooShort"
        with pytest.raises(RequestError) as exc_info:
            finder.require_string_rune_len(1, 4, "b")
        assert exc_info.value.message == "bTooLong"


class TestStringMatch:
    def test_unanchored_search(self) -> None:
        finder = Finder(form=_query(a="abcderg"))
        assert finder.find_string_match(re.compile(r"\w+"), "a")
        assert finder.find_string_match(r"cd", "a")
        assert finder.find_string_match(r"\d+", "a").error is FindError.DOES_NOT_MATCH

    def test_require(self) -> None:
        finder = Finder(form=_query(email="nope"))
        with pytest.raises(RequestError) as exc_info:
            finder.require_string_match(r"@", "email")
        assert exc_info.value.message == "emailInvalid"


class TestPositive:
    def test_positive_int_is_strict(self) -> None:
        finder = Finder.from_bytes(b'{"zero": 0, "neg": -1, "one": 1}')
        assert finder.find_positive_int("zero").error is FindError.NOT_POSITIVE
        assert finder.find_positive_int("neg").error is FindError.NOT_POSITIVE
        assert finder.find_positive_int("one") == Found(1)

    def test_positive_float_accepts_zero(self) -> None:
        finder = Finder.from_bytes(b'{"zero": 0.0, "neg": -0.5}')
        assert finder.find_positive_float("zero") == Found(0.0)
        assert finder.find_positive_float("neg").error is FindError.NOT_POSITIVE
        assert finder.require_positive_float("zero") == 0.0

    def test_require_not_positive(self) -> None:
        finder = Finder.from_bytes(b'{"count": 0, "price": -1}')
        with pytest.raises(RequestError) as exc_info:
            finder.require_positive_int("count")
        assert exc_info.value.message == "countNotPositive"
        with pytest.raises(RequestError) as exc_info:
            finder.require_positive_float("price")
        assert exc_info.value.message == "priceNotPositive"


class TestOptional:
    def test_default_for_absent_null_and_empty(self) -> None:
        finder = Finder.from_bytes(b'{"empty": "", "null": null}')
        assert finder.find_optional_string("d", "empty") == Found("d")
        assert finder.find_optional_string("d", "null") == Found("d")
        assert finder.find_optional_string("d", "missing") == Found("d")
        assert finder.find_optional_int(7, "missing") == Found(7)
        assert finder.find_optional_float(0.5, "null") == Found(0.5)
        assert finder.find_optional_bool(True, "missing") == Found(True)

    def test_null_root_uses_default(self) -> None:
        assert Finder().find_optional_int(3, "page") == Found(3)

    def test_type_errors_propagate(self) -> None:
        finder = Finder.from_bytes(b'{"a": "x"}')
        assert finder.find_optional_int(7, "a") == Found(0, FindError.WRONG_TYPE)

    def test_present_value_kept(self) -> None:
        finder = Finder(form=_query(page="2"))
        assert finder.find_optional_int(1, "page") == Found(2)


class TestRequire:
    def test_returns_bare_values(self) -> None:
        finder = Finder.from_bytes(b'{"s": "x", "b": true, "l": [1], "m": {"k": 1}, "f": 1.5}')
        assert finder.require_string("s") == "x"
        assert finder.require_bool("b") is True
        assert finder.require_slice("l") == [1]
        assert finder.require_map("m") == {"k": 1}
        assert finder.require_float("f") == 1.5

    def test_invalid_message_uses_last_string_key(self) -> None:
        finder = Finder.from_bytes(b'{"photo": [{"name": ""}]}')
        with pytest.raises(RequestError) as exc_info:
            finder.require_string("photo", 0, "name")
        assert exc_info.value.message == "nameInvalid"
        assert exc_info.value.status == 400

    def test_invalid_message_without_string_key(self) -> None:
        finder = Finder.from_bytes(b"[1]")
        with pytest.raises(RequestError) as exc_info:
            finder.require_string(0)
        assert exc_info.value.message == "valueInvalid"

    def test_error_key(self) -> None:
        assert error_key(["a", 0, "b"]) == "b"
        assert error_key(["a", 0]) == "value"
        assert error_key([]) == "value"


class TestFormSource:
    def test_merged_params_prefer_form_body(self) -> None:
        form = _query(name="posted")
        finder = Finder(form=Params(form, _query(name="queried", page="3")))
        assert finder.require_string("name") == "posted"
        assert finder.require_int("page") == 3

    def test_form_number_wins_over_body(self) -> None:
        finder = Finder.from_bytes(b'{"n": 1}', form=_query(n="2"))
        assert finder.require_int("n") == 2

    def test_from_bytes_rejects_malformed(self) -> None:
        with pytest.raises(ValueError):
            Finder.from_bytes(b"{nope")
