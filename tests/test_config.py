from __future__ import annotations

from core.config import (
    DEFAULT_FORCE_HOURS,
    config_sources_from_store,
    load_consolidated,
    parse_list_text,
    parse_number,
    resolve_config,
)


class DictStore:
    def __init__(self, values: dict) -> None:
        self.values = values

    def get(self, key: str):
        return self.values.get(key)

    def put(self, key: str, value: str) -> None:
        self.values[key] = value


def test_parse_list_text_handles_separators_comments_and_quotes() -> None:
    raw = 'FC Anyang, "K League 2"\r\n# full-line comment\nsigning; injury # trailing\n안양，승격、감독'
    assert parse_list_text(raw) == ["FC Anyang", "K League 2", "signing", "injury", "안양", "승격", "감독"]
    assert parse_list_text("") == []
    assert parse_list_text(None) == []


def test_parse_number() -> None:
    assert parse_number("30") == 30
    assert parse_number(" 7 ") == 7
    assert parse_number(2.9) == 2
    assert parse_number("abc") is None
    assert parse_number("") is None
    assert parse_number(True) is None
    assert parse_number("nan") is None


def test_defaults_when_no_source_has_values() -> None:
    config = resolve_config([None, {}, None])

    assert config.search_keywords == ()
    assert config.display_per_call == 30
    assert config.max_loops == 3
    assert config.min_send_threshold == 3
    assert config.force_hours == DEFAULT_FORCE_HOURS


def test_first_non_empty_source_wins_per_field() -> None:
    consolidated = {"search_keywords": ["FC Anyang"], "include_keywords": []}
    overrides = {"include_keywords": "signing, injury", "max_loops": "5"}
    defaults = {"include_keywords": "ignored", "max_loops": "2", "exclude_keywords": "baseball"}

    config = resolve_config([consolidated, overrides, defaults])

    assert config.search_keywords == ("FC Anyang",)
    assert config.include_keywords == ("signing", "injury")
    assert config.exclude_keywords == ("baseball",)
    assert config.max_loops == 5


def test_numbers_are_clamped_and_hours_filtered() -> None:
    config = resolve_config(
        [{"display_per_call": 500, "max_loops": 0, "min_send_threshold": -4, "force_hours": "7, 25, x, 23"}]
    )

    assert config.display_per_call == 100
    assert config.max_loops == 1
    assert config.min_send_threshold == 0
    assert config.force_hours == frozenset({7, 23})


def test_malformed_consolidated_record_falls_back() -> None:
    assert load_consolidated("{not json") is None
    assert load_consolidated("[1, 2]") is None
    assert load_consolidated(None) is None

    store = DictStore({"cfg:APP": "{not json", "SEARCH_KEYWORDS": "FC Anyang\nAnyang FC"})
    config = resolve_config(config_sources_from_store(store, {"search_keywords": "default"}))

    assert config.search_keywords == ("FC Anyang", "Anyang FC")
    assert config.query == "FC Anyang Anyang FC"
