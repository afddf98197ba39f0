import pytest

from license_inspector.severity import SeverityClassifier
from license_inspector.types import POSITIVE_LIST, SeverityLabels


def test_missing_license_is_worst_tier(stub_oracle):
    classifier = SeverityClassifier(oracle=stub_oracle)
    assert classifier.classify(None) == "ERROR"
    assert classifier.classify("") == "ERROR"
    assert stub_oracle.calls == []


def test_osi_approved_is_lowest(stub_oracle):
    classifier = SeverityClassifier(oracle=stub_oracle)
    assert classifier.classify("MIT") == "LOW"
    assert classifier.classify("GPL-3.0-only") == "LOW"


def test_positive_list_is_middle_tier(stub_oracle):
    classifier = SeverityClassifier(oracle=stub_oracle)
    assert classifier.classify("CC0-1.0") == "NORMAL"
    assert classifier.classify("CC-BY-4.0") == "NORMAL"


def test_known_but_not_approved_is_flagged_for_review(stub_oracle):
    classifier = SeverityClassifier(oracle=stub_oracle)
    assert classifier.outcome("WTFPL") == "review"
    assert classifier.classify("WTFPL") == "HIGH"


def test_unresolvable_license_is_worst_unless_allow_listed(stub_oracle):
    classifier = SeverityClassifier(oracle=stub_oracle)
    assert classifier.classify("SEE LICENSE IN LICENSE.md") == "ERROR"

    allow_listed = SeverityClassifier(oracle=stub_oracle, positive_list=["Unlicense", "Custom-Internal"])
    assert allow_listed.outcome("Custom-Internal") == "positive"
    assert allow_listed.classify("Custom-Internal") == "NORMAL"


def test_classification_is_deterministic_and_memoised(stub_oracle):
    classifier = SeverityClassifier(oracle=stub_oracle)
    first = classifier.classify("WTFPL")
    second = classifier.classify("WTFPL")
    assert first == second
    assert stub_oracle.calls == ["WTFPL"]


def test_legacy_preset_swaps_worst_tiers(stub_oracle):
    classifier = SeverityClassifier(oracle=stub_oracle, labels=SeverityLabels.preset("legacy"))
    assert classifier.classify(None) == "HIGH"
    assert classifier.classify("WTFPL") == "ERROR"
    assert classifier.classify("MIT") == "LOW"


def test_label_overrides_are_validated():
    labels = SeverityLabels().with_overrides({"review": "normal"})
    assert labels.review == "NORMAL"

    with pytest.raises(ValueError):
        SeverityLabels().with_overrides({"bogus": "LOW"})
    with pytest.raises(ValueError):
        SeverityLabels(missing="CRITICAL")
    with pytest.raises(ValueError):
        SeverityLabels.preset("strict")


def test_default_positive_list():
    assert POSITIVE_LIST == ("CC0-1.0", "CC-BY-4.0", "Unlicense")


def test_real_oracle_decision_table():
    classifier = SeverityClassifier()
    assert classifier.classify("MIT") == "LOW"
    assert classifier.classify("CC0-1.0") == "NORMAL"
    assert classifier.classify("definitely not a license") == "ERROR"
