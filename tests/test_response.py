"""
test_response - RunResponse 경로 접근자 테스트
"""

import pytest

from flow_relay.engine.errors import ResponseShapeError
from flow_relay.engine.response import (
    STREAM_URL_PATH,
    TEXT_PATH,
    extract_output_text,
    find_path,
    find_stream_url,
    format_path,
    get_path,
)

from stub_engine import stream_response, text_response


class TestFormatPath:
    def test_text_path(self):
        assert format_path(TEXT_PATH) == "outputs[0].outputs[0].outputs.message.message.text"

    def test_stream_url_path(self):
        assert format_path(STREAM_URL_PATH) == "outputs[0].outputs[0].artifacts.stream_url"


class TestExtractOutputText:
    def test_documented_shape(self):
        assert extract_output_text(text_response("hi there")) == "hi there"

    def test_empty_text_allowed(self):
        assert extract_output_text(text_response("")) == ""

    @pytest.mark.parametrize(
        "response, missing",
        [
            ({}, "outputs"),
            ({"outputs": []}, "outputs[0]"),
            ({"outputs": [{"outputs": []}]}, "outputs[0].outputs[0]"),
            ({"outputs": [{"outputs": [{"outputs": {}}]}]}, "outputs[0].outputs[0].outputs.message"),
            (None, "outputs"),
        ],
    )
    def test_missing_path_raises(self, response, missing):
        with pytest.raises(ResponseShapeError) as exc_info:
            extract_output_text(response)

        err = exc_info.value
        assert err.path == format_path(TEXT_PATH)
        assert err.message.endswith(f"missing {missing}")
        assert err.details == {"path": format_path(TEXT_PATH)}

    def test_null_text_raises(self):
        response = text_response("x")
        response["outputs"][0]["outputs"][0]["outputs"]["message"]["message"]["text"] = None
        with pytest.raises(ResponseShapeError):
            extract_output_text(response)

    def test_non_string_text_raises(self):
        response = text_response("x")
        response["outputs"][0]["outputs"][0]["outputs"]["message"]["message"]["text"] = 42
        with pytest.raises(ResponseShapeError, match="not a string"):
            extract_output_text(response)

    def test_stream_response_has_no_text(self):
        with pytest.raises(ResponseShapeError):
            extract_output_text(stream_response("/s"))


class TestFindStreamUrl:
    def test_present(self):
        assert find_stream_url(stream_response("/api/v1/build/j/events")) == "/api/v1/build/j/events"

    def test_absent(self):
        assert find_stream_url(text_response("hi")) is None
        assert find_stream_url({}) is None
        assert find_stream_url({"outputs": "bogus"}) is None

    def test_empty_url_is_absent(self):
        assert find_stream_url(stream_response("")) is None


class TestPathHelpers:
    def test_get_path_list_index(self):
        assert get_path({"a": [1, 2]}, ("a", 1)) == 2

    def test_find_path_out_of_range(self):
        assert find_path({"a": [1]}, ("a", 3)) is None

    def test_index_on_dict_is_missing(self):
        assert find_path({"a": {"0": 1}}, ("a", 0)) is None
