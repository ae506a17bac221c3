import json

import pytest

from writing_coach.errors import ParseError, SchemaMismatch
from writing_coach.extraction import (
    Matched,
    ResultShape,
    Unmatched,
    extract_json,
    normalize_result,
    parse_result,
    unwrap_result,
)


EVALUATION = {
    "score": 85,
    "generalFeedback": "Clear and well organised.",
    "detailedCorrections": [],
    "improvedVersion": "I have a pen.",
}


def test_direct_parse_matches_json_loads():
    text = '  {"a": [1, 2, {"b": null}], "c": "ü"}\n'
    assert extract_json(text) == json.loads(text)


def test_direct_parse_of_array():
    assert extract_json('["One", "Two"]') == ["One", "Two"]


@pytest.mark.parametrize("tag", ["json", "JSON", ""])
def test_fenced_block_is_unwrapped(tag):
    text = f"```{tag}\n{json.dumps(EVALUATION)}\n```"
    assert extract_json(text) == EVALUATION


def test_fenced_block_inside_prose():
    text = "Sure! Here is the evaluation:\n```json\n{\"reply\": \"ok\"}\n```\nLet me know if you need more."
    assert extract_json(text) == {"reply": "ok"}


def test_brace_span_inside_prose():
    text = 'The result is {"score": 70, "note": "has } inside"} as requested.'
    assert extract_json(text) == {"score": 70, "note": "has } inside"}


def test_bracket_span_inside_prose():
    assert extract_json('Topics: ["A", "B", "C"]. Enjoy!') == ["A", "B", "C"]


def test_unparseable_text_raises_with_raw_text():
    with pytest.raises(ParseError) as excinfo:
        extract_json("I cannot help with that.")
    assert excinfo.value.raw_text == "I cannot help with that."
    assert excinfo.value.to_payload()["details"]["raw"] == "I cannot help with that."


def test_empty_text_raises():
    with pytest.raises(ParseError):
        extract_json("")


def test_top_level_evaluation_matches():
    result = normalize_result(EVALUATION, ResultShape.EVALUATION)
    assert result == Matched(ResultShape.EVALUATION, EVALUATION)


def test_single_key_unwrap():
    assert unwrap_result({"outer": EVALUATION}, ResultShape.EVALUATION) == EVALUATION


def test_material_detected_by_sample_essay():
    material = {"topic": "T", "introduction": "i", "sampleEssay": "s", "analysis": "a"}
    assert unwrap_result({"result": material}, ResultShape.TOPIC_MATERIAL) == material


def test_boolean_score_does_not_count_as_numeric():
    value = {"score": True}
    assert isinstance(normalize_result(value, ResultShape.EVALUATION), Unmatched)


def test_unwrap_only_looks_one_level_deep():
    value = {"a": {"b": EVALUATION}}
    assert isinstance(normalize_result(value, ResultShape.EVALUATION), Unmatched)


def test_first_array_element_is_a_candidate():
    assert unwrap_result([EVALUATION, {"score": 1}], ResultShape.EVALUATION) == EVALUATION


def test_no_candidate_returns_value_unchanged():
    value = {"unrelated": "x"}
    assert unwrap_result(value, ResultShape.EVALUATION) is value


def test_no_candidate_raises_when_strict():
    with pytest.raises(SchemaMismatch) as excinfo:
        unwrap_result({"unrelated": "x"}, ResultShape.EVALUATION, strict=True)
    assert excinfo.value.raw_value == {"unrelated": "x"}


def test_topic_list_from_plain_array():
    assert unwrap_result(["A", "B"], ResultShape.TOPIC_LIST) == ["A", "B"]


def test_topic_list_from_single_array_property():
    assert unwrap_result({"topics": ["A", "B", "C"]}, ResultShape.TOPIC_LIST) == ["A", "B", "C"]


def test_topic_list_nested_one_level():
    value = {"data": {"titles": ["A"]}}
    assert unwrap_result(value, ResultShape.TOPIC_LIST) == ["A"]


def test_topic_list_from_first_string_array_property():
    value = {"easy": ["A"], "hard": ["B"]}
    assert unwrap_result(value, ResultShape.TOPIC_LIST) == ["A"]


def test_topic_list_with_two_non_string_arrays_is_unmatched():
    value = {"easy": [1], "hard": [2]}
    assert isinstance(normalize_result(value, ResultShape.TOPIC_LIST), Unmatched)


def test_chat_reply_unwrap():
    assert unwrap_result({"response": {"reply": "Because..."}}, ResultShape.CHAT_REPLY) == {"reply": "Because..."}


def test_parse_result_end_to_end():
    text = "```json\n" + json.dumps({"result": EVALUATION}) + "\n```"
    assert parse_result(text, ResultShape.EVALUATION) == EVALUATION
