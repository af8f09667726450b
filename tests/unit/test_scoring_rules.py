import pytest

from priority_engine.features.priority_intelligence.domain.errors import ScoringRulesError
from priority_engine.features.priority_intelligence.pipeline.scoring import (
    ScoringRules,
    load_scoring_rules,
    parse_scoring_rules,
)


def test_partial_document_keeps_defaults():
    rules = parse_scoring_rules({"sender_base": 60, "internal_domains": ["acme.com"]})

    assert rules.sender_base == 60
    assert rules.internal_domains == ["acme.com"]
    assert rules.keyword_base == ScoringRules().keyword_base


def test_empty_document_returns_defaults():
    assert parse_scoring_rules(None) == ScoringRules()
    assert parse_scoring_rules({}) == ScoringRules()


def test_unknown_key_is_rejected():
    with pytest.raises(ScoringRulesError):
        parse_scoring_rules({"sender_bonus_typo": 10})


def test_negative_weight_is_rejected():
    with pytest.raises(ScoringRulesError):
        parse_scoring_rules(
            {"chat_weights": {"sender": -1, "keywords": 0, "urgency": 0, "vip": 0, "engagement": 0}}
        )


def test_non_mapping_document_is_rejected():
    with pytest.raises(ScoringRulesError):
        parse_scoring_rules(["sender_base", 60])


def test_load_rules_from_yaml(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(
        "critical_keywords:\n  - urgent\n  - outage\nexplanation_threshold: 60\n",
        encoding="utf-8",
    )

    rules = load_scoring_rules(path)

    assert rules.critical_keywords == ["urgent", "outage"]
    assert rules.explanation_threshold == 60


def test_missing_rules_file_falls_back_to_defaults(tmp_path):
    rules = load_scoring_rules(tmp_path / "missing.yaml")

    assert rules == ScoringRules()


def test_malformed_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("critical_keywords: [urgent\n", encoding="utf-8")

    assert load_scoring_rules(path) == ScoringRules()


def test_invalid_values_in_readable_file_raise(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("confidence_floor: not-a-number\n", encoding="utf-8")

    with pytest.raises(ScoringRulesError):
        load_scoring_rules(path)


def test_weights_for_selects_source_table():
    rules = ScoringRules()

    assert rules.weights_for(is_chat=False)["urgency"] == 0.30
    assert rules.weights_for(is_chat=True)["urgency"] == 0.35
