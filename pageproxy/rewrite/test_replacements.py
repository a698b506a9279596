import json

from pageproxy.rewrite.replacements import load_replacements


def test_missing_file_is_empty(tmp_path):
    assert load_replacements(str(tmp_path / "nope.json")) == {}


def test_empty_path_is_empty():
    assert load_replacements("") == {}


def test_loads_mapping_in_file_order(tmp_path):
    path = tmp_path / "words.json"
    path.write_text(json.dumps({"zeta": "z", "alpha": "a"}), encoding="utf-8")

    result = load_replacements(str(path))

    assert result == {"zeta": "z", "alpha": "a"}
    assert list(result) == ["zeta", "alpha"]


def test_invalid_json_is_empty(tmp_path):
    path = tmp_path / "words.json"
    path.write_text("{broken", encoding="utf-8")
    assert load_replacements(str(path)) == {}


def test_non_object_is_empty(tmp_path):
    path = tmp_path / "words.json"
    path.write_text(json.dumps(["foo", "bar"]), encoding="utf-8")
    assert load_replacements(str(path)) == {}


def test_non_string_values_are_rejected(tmp_path):
    path = tmp_path / "words.json"
    path.write_text(json.dumps({"foo": {"nested": True}}), encoding="utf-8")
    assert load_replacements(str(path)) == {}


def test_loaded_fresh_each_call(tmp_path):
    path = tmp_path / "words.json"
    path.write_text(json.dumps({"a": "b"}), encoding="utf-8")
    assert load_replacements(str(path)) == {"a": "b"}

    path.write_text(json.dumps({"c": "d"}), encoding="utf-8")
    assert load_replacements(str(path)) == {"c": "d"}
