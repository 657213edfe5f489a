import pytest

from openapi_params.decoder.styles import decode_style, is_json_mime_type
from openapi_params.errors import ConfigurationError, FormatError
from openapi_params.parser.base import ArrayOf, ObjectOf, ParameterDefinition, Primitive

ARRAY = ArrayOf(items=Primitive(type="string"))
OBJECT = ObjectOf()
STRING = Primitive(type="string")


def _param(style, schema, explode=False, location="query", name="color", **kwargs) -> ParameterDefinition:
    return ParameterDefinition(
        name=name, location=location, style=style, explode=explode, schema_node=schema, **kwargs
    )


class TestMatrix:
    def test_primitive(self):
        assert decode_style(_param("matrix", STRING, location="path"), ";color=blue") == "blue"

    def test_array(self):
        param = _param("matrix", ARRAY, location="path")
        assert decode_style(param, ";color=blue,black,brown") == ["blue", "black", "brown"]

    def test_array_explode(self):
        param = _param("matrix", ARRAY, explode=True, location="path")
        assert decode_style(param, ";color=blue;color=black;color=brown") == ["blue", "black", "brown"]

    def test_object(self):
        param = _param("matrix", OBJECT, location="path")
        assert decode_style(param, ";color=R,100,G,200") == {"R": "100", "G": "200"}

    def test_object_explode(self):
        param = _param("matrix", OBJECT, explode=True, location="path")
        assert decode_style(param, ";R=100;G=200;B=150") == {"R": "100", "G": "200", "B": "150"}

    def test_empty(self):
        assert decode_style(_param("matrix", ARRAY, location="path"), ";color") == [""]
        assert decode_style(_param("matrix", OBJECT, location="path"), ";color") == {}

    @pytest.mark.parametrize("raw", ["color=blue", ";size=1", "blue"])
    def test_wrong_prefix(self, raw):
        with pytest.raises(FormatError, match="is not a valid matrix-style value"):
            decode_style(_param("matrix", STRING, location="path"), raw)

    def test_explode_with_foreign_name(self):
        param = _param("matrix", ARRAY, explode=True, location="path")
        with pytest.raises(FormatError, match="is not a valid matrix-style value"):
            decode_style(param, ";color=blue;size=2")


class TestLabel:
    def test_primitive_keeps_dots(self):
        assert decode_style(_param("label", Primitive(type="number"), location="path"), ".3.5") == "3.5"

    @pytest.mark.parametrize("explode", [False, True])
    def test_array(self, explode):
        param = _param("label", ARRAY, explode=explode, location="path")
        assert decode_style(param, ".blue.black.brown") == ["blue", "black", "brown"]

    def test_object(self):
        param = _param("label", OBJECT, location="path")
        assert decode_style(param, ".R.100.G.200") == {"R": "100", "G": "200"}

    def test_object_explode(self):
        param = _param("label", OBJECT, explode=True, location="path")
        assert decode_style(param, ".R=100.G=200") == {"R": "100", "G": "200"}

    def test_missing_dot(self):
        with pytest.raises(FormatError, match='"blue" is not a valid label-style value'):
            decode_style(_param("label", STRING, location="path"), "blue")


class TestSimple:
    @pytest.mark.parametrize("explode", [False, True])
    def test_array(self, explode):
        param = _param("simple", ARRAY, explode=explode, location="header")
        assert decode_style(param, "blue,black,brown") == ["blue", "black", "brown"]

    def test_object(self):
        param = _param("simple", OBJECT, location="header")
        assert decode_style(param, "R,100,G,200") == {"R": "100", "G": "200"}

    def test_object_explode(self):
        param = _param("simple", OBJECT, explode=True, location="header")
        assert decode_style(param, "R=100,G=200") == {"R": "100", "G": "200"}

    def test_odd_key_value_list(self):
        param = _param("simple", OBJECT, location="header")
        assert decode_style(param, "R,100,G") == {"R": "100", "G": ""}


class TestForm:
    def test_array(self):
        assert decode_style(_param("form", ARRAY), "red,green,blue") == ["red", "green", "blue"]

    def test_single_exploded_value_is_wrapped(self):
        assert decode_style(_param("form", ARRAY, explode=True), "blue") == ["blue"]

    def test_repeated_values_from_query_parser(self):
        assert decode_style(_param("form", ARRAY, explode=True), ["blue", "green"]) == ["blue", "green"]

    def test_repeated_key_is_last_wins_for_primitives(self):
        assert decode_style(_param("form", STRING), ["blue", "green"]) == "green"

    def test_exploded_cookie_array(self):
        param = _param("form", ARRAY, explode=True, location="cookie")
        assert decode_style(param, "blue&color=green&color=red") == ["blue", "green", "red"]

    def test_single_exploded_cookie_value_is_wrapped(self):
        param = _param("form", ARRAY, explode=True, location="cookie")
        assert decode_style(param, "blue") == ["blue"]

    def test_object(self):
        assert decode_style(_param("form", OBJECT), "foo,1,bar,2") == {"foo": "1", "bar": "2"}

    def test_object_explode_is_querystring_decoded(self):
        param = _param("form", OBJECT, explode=True)
        assert decode_style(param, "foo=1&bar=a%20b&bar=c") == {"foo": "1", "bar": ["a b", "c"]}

    def test_keeps_key_order(self):
        param = _param("form", OBJECT)
        assert list(decode_style(param, "z,1,a,2,m,3")) == ["z", "a", "m"]


class TestDelimited:
    def test_space_delimited(self):
        assert decode_style(_param("spaceDelimited", ARRAY), "blue black brown") == ["blue", "black", "brown"]

    def test_pipe_delimited(self):
        assert decode_style(_param("pipeDelimited", ARRAY), "blue|black|brown") == ["blue", "black", "brown"]

    def test_pipe_delimited_object(self):
        assert decode_style(_param("pipeDelimited", OBJECT), "R|100|G|200") == {"R": "100", "G": "200"}

    def test_primitive_is_untouched(self):
        assert decode_style(_param("spaceDelimited", STRING), "blue black") == "blue black"


class TestDeepObject:
    def test_bracket_notation(self):
        param = _param("deepObject", OBJECT, explode=True)
        assert decode_style(param, "color[R]=100&color[G]=200") == {"R": "100", "G": "200"}

    def test_other_names_are_ignored(self):
        param = _param("deepObject", OBJECT, explode=True)
        assert decode_style(param, "color[R]=100&size[w]=3&page=2") == {"R": "100"}

    def test_only_for_objects(self):
        with pytest.raises(ConfigurationError, match="only applies to objects"):
            decode_style(_param("deepObject", ARRAY, explode=True), "color[0]=blue")

    def test_nested_brackets_are_rejected(self):
        param = _param("deepObject", OBJECT, explode=True)
        with pytest.raises(FormatError, match="is not a valid deepObject key"):
            decode_style(param, "color[R]=100&color[a][b]=1")


class TestContent:
    def _content_param(self, mime_type, schema=None):
        return ParameterDefinition(name="filter", location="query", content={mime_type: schema})

    @pytest.mark.parametrize("mime_type", ["application/json", "text/json", "application/vnd.api+json", "application/json; charset=utf-8"])
    def test_json_family_is_parsed(self, mime_type):
        assert decode_style(self._content_param(mime_type), '{"a": [1, 2]}') == {"a": [1, 2]}

    def test_other_types_stay_strings(self):
        assert decode_style(self._content_param("text/plain"), '{"a": 1}') == '{"a": 1}'

    def test_invalid_json_is_a_format_error(self):
        with pytest.raises(FormatError, match="is not valid JSON") as exc_info:
            decode_style(self._content_param("application/json", OBJECT), "{oops")
        assert exc_info.value.status == 400

    def test_deeply_nested_json_is_a_format_error(self):
        with pytest.raises(FormatError, match="nested too deeply"):
            decode_style(self._content_param("application/json"), "[" * 100000 + "]" * 100000)

    def test_empty_string_schema_keeps_empty_string(self):
        assert decode_style(self._content_param("application/json", STRING), "") == ""

    def test_mime_type_matching(self):
        assert is_json_mime_type("APPLICATION/JSON")
        assert is_json_mime_type("application/problem+json")
        assert not is_json_mime_type("application/xml")
        assert not is_json_mime_type("application/jsonp")


class TestDefaults:
    def test_absent_without_default(self):
        assert decode_style(_param("form", ARRAY), None) is None

    def test_typed_default_is_returned_verbatim(self):
        default = ["A", "B", "C"]
        param = _param("form", ArrayOf(items=STRING, default=default))
        assert decode_style(param, None) == ["A", "B", "C"]

    def test_string_default_uses_plain_commas(self):
        param = _param("label", ArrayOf(items=STRING, default="A,B,C"), location="path")
        assert decode_style(param, None) == ["A", "B", "C"]

    def test_blank_uses_default_for_non_strings(self):
        param = _param("form", ArrayOf(items=STRING, default="hello world"))
        assert decode_style(param, "") == ["hello world"]

    def test_blank_string_is_a_value(self):
        param = _param("form", Primitive(type="string", default="fallback"))
        assert decode_style(param, "") == ""

    def test_typed_default_is_a_copy(self):
        param = _param("form", ObjectOf(default={"R": ["1"]}), explode=True)
        decode_style(param, None)["R"].append("2")
        assert decode_style(param, None) == {"R": ["1"]}

    def test_parameter_default_wins_over_schema_default(self):
        param = _param("form", Primitive(type="integer", default=1), default=2)
        assert decode_style(param, None) == 2


class TestBlankArrays:
    @pytest.mark.parametrize("style, location, raw", [
        ("simple", "header", ""),
        ("label", "path", "."),
        ("form", "query", ""),
        ("pipeDelimited", "query", ""),
    ])
    def test_blank_body_is_one_empty_item(self, style, location, raw):
        assert decode_style(_param(style, ARRAY, location=location), raw) == [""]

    def test_blank_object_is_empty(self):
        assert decode_style(_param("simple", OBJECT, location="header"), "") == {}
