import json

import pytest

from webpanel.config import INDUSTRY_WEIGHTS
from webpanel.services.consensus import (
    build_consensus,
    category_for,
    detect_anomalies,
    detect_industry,
    determine_verdict,
    expert_agreement,
    final_weighted_score,
    meets_excellent_criteria,
    normalize,
    qualifies_as_excellent,
    select_weights,
    weighted_composite,
)
from webpanel.services.errors import AggregationInputViolation
from webpanel.services.models import (
    AgentKind,
    ConsensusResult,
    ExpertEvaluation,
    VerdictTier,
    agent_verdict,
)

LAW_EXAMPLE = {"ux": 9.0, "visual": 7.0, "content": 8.5, "conversion": 8.5, "seo": 8.0, "brand": 8.75}


def _ev(kind, score):
    return ExpertEvaluation(agent=kind, focus="", score=score, strengths=(), weaknesses=(),
                            verdict=agent_verdict(min(max(score, 0.0), 10.0)))


def _panel(*scores):
    return [_ev(kind, s) for kind, s in zip(AgentKind, scores)]


# --- industry detection

def test_law_outranks_ecommerce():
    body = "Talk to an attorney today. Or add to cart our legal forms."
    assert detect_industry("https://example.com", body) == "law"


@pytest.mark.parametrize("url, body, expected", [
    ("https://shop.example.com/checkout", "", "ecommerce"),
    ("https://example.com", "Start free with our API", "saas"),
    ("https://example.com", "Our design studio portfolio", "creative-agency"),
    ("https://example.com", "Book a dental cleaning", "medical"),
    ("https://example.com", "Browse homes for sale", "real-estate"),
    ("https://example.com", "Schedule a test drive", "automotive"),
    ("https://example.com", "Boston injury attorneys", "law"),
    ("https://example.com", "Venture capital for founders", "default"),
    ("", "", "default"),
])
def test_industry_rules(url, body, expected):
    assert detect_industry(url, body) == expected


def test_unknown_industry_uses_default_profile():
    assert select_weights("aerospace") is INDUSTRY_WEIGHTS["default"]
    assert select_weights("law")["content"] == 0.20


def test_agent_category_mapping():
    assert category_for(AgentKind.UX_DESIGNER) == "ux"
    assert category_for("Product Designer") == "visual"
    assert category_for("Brand Identity Analyst") == "brand"
    assert category_for("Copywriter") == "content"


# --- aggregation

def test_normalize_maps_agents_to_categories():
    scores = normalize(_panel(9, 7, 8.5, 8, 8.75))
    assert scores == {"ux": 9, "visual": 7, "conversion": 8.5, "seo": 8, "brand": 8.75}


def test_weighted_composite_law_example():
    assert weighted_composite(LAW_EXAMPLE, INDUSTRY_WEIGHTS["law"]) == pytest.approx(83.25)


def test_missing_categories_contribute_nothing():
    scores = {"ux": 10.0}
    assert weighted_composite(scores, INDUSTRY_WEIGHTS["default"]) == pytest.approx(20.0)


def test_single_low_category_is_flagged():
    scores = {"ux": 9, "visual": 9, "content": 9, "conversion": 2, "seo": 9, "brand": 9}
    anomalies = detect_anomalies(scores)
    assert len(anomalies) == 1
    assert anomalies[0].startswith("conversion")
    assert "(2.0)" in anomalies[0] and "(7.8)" in anomalies[0]


def test_no_anomalies_for_tight_scores():
    assert detect_anomalies({"ux": 5, "visual": 6, "seo": 7}) == ()
    assert detect_anomalies({}) == ()


def test_agreement_extremes():
    assert expert_agreement({"ux": 6.0, "visual": 6.0, "seo": 6.0}) == 100.0
    spread = {"a": 0, "b": 10, "c": 0, "d": 10, "e": 0, "f": 10}
    assert expert_agreement(spread) == 0.0


def test_agreement_drops_with_variance():
    # population variance 1.0
    assert expert_agreement({"a": 4, "b": 6}) == pytest.approx(90.0)


# --- verdict

@pytest.mark.parametrize("score, expected", [
    (0.0, VerdictTier.POOR),
    (39.99, VerdictTier.POOR),
    (40.0, VerdictTier.OK),
    (59.9, VerdictTier.OK),
    (60.0, VerdictTier.GOOD),
    (74.9, VerdictTier.GOOD),
])
def test_verdict_cutoffs(score, expected):
    assert determine_verdict(score, {}) is expected


def test_low_visual_vetoes_excellent():
    weighted = weighted_composite(LAW_EXAMPLE, INDUSTRY_WEIGHTS["law"])
    assert weighted > 75
    assert determine_verdict(weighted, LAW_EXAMPLE) is VerdictTier.GOOD
    assert not meets_excellent_criteria(LAW_EXAMPLE)


def test_all_thresholds_met_is_excellent():
    scores = dict(LAW_EXAMPLE, visual=8.0)
    weighted = weighted_composite(scores, INDUSTRY_WEIGHTS["law"])
    assert weighted == pytest.approx(84.75)
    assert determine_verdict(weighted, scores) is VerdictTier.EXCELLENT


def test_perfect_scores_are_world_class():
    scores = {c: 10.0 for c in LAW_EXAMPLE}
    assert determine_verdict(100.0, scores) is VerdictTier.WORLD_CLASS


def test_missing_content_vetoes_even_high_scores():
    scores = {"ux": 10.0, "visual": 10.0, "conversion": 10.0, "seo": 10.0, "brand": 10.0}
    assert determine_verdict(95.0, scores) is VerdictTier.GOOD


# --- build_consensus

def test_build_consensus_shape():
    result = build_consensus(_panel(9, 7, 8.5, 8, 8.75), "https://example.com", "")

    assert result.industry == "default"
    assert list(result.normalized_scores) == ["ux", "visual", "conversion", "seo", "brand"]
    assert 0 <= result.weighted_score <= 100
    assert 0 <= result.expert_agreement <= 100
    # no content score, so the best possible verdict is Good
    assert result.final_verdict is VerdictTier.GOOD


def test_build_consensus_is_deterministic():
    panel = _panel(3.2, 6.1, 2.0, 7.7, 5.5)
    first = build_consensus(panel, "https://example.com", "Call our attorney")
    second = build_consensus(list(panel), "https://example.com", "Call our attorney")

    assert first == second
    assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())
    assert first.industry == "law"


def test_partial_panel_is_rejected():
    with pytest.raises(AggregationInputViolation) as exc:
        build_consensus(_panel(5, 5, 5, 5), "https://example.com", "")
    assert "Brand Identity Analyst" in str(exc.value)
    assert exc.value.stage == "consensus"


def test_duplicate_agent_is_rejected():
    panel = _panel(5, 5, 5, 5, 5)
    panel[4] = _ev(AgentKind.UX_DESIGNER, 5)
    with pytest.raises(AggregationInputViolation):
        build_consensus(panel, "https://example.com", "")


def test_out_of_range_score_is_rejected():
    with pytest.raises(AggregationInputViolation) as exc:
        build_consensus(_panel(5, 5, 11, 5, 5), "https://example.com", "")
    assert exc.value.agent == "Conversion Strategist"
    # still a ValueError for callers that only know the builtin
    assert isinstance(exc.value, ValueError)


def test_consensus_tables_are_read_only():
    weights = dict(INDUSTRY_WEIGHTS["default"])
    scores = {"ux": 6.0, "visual": 6.0}
    result = ConsensusResult(industry="default", weights=weights, normalized_scores=scores,
                             weighted_score=24.0, anomalies=(), final_verdict=VerdictTier.POOR,
                             expert_agreement=100.0)

    with pytest.raises(TypeError):
        result.weights["ux"] = 1.0
    with pytest.raises(TypeError):
        result.normalized_scores["ux"] = 10.0
    # the caller's dicts are copied, not shared
    scores["ux"] = 0.0
    weights.clear()
    assert result.normalized_scores["ux"] == 6.0
    assert result.to_dict()["weights"] == dict(INDUSTRY_WEIGHTS["default"])


# --- headline score

def test_final_score_blends_seventy_thirty():
    assert final_weighted_score(80.0, 60.0) == 74.0
    assert final_weighted_score(32.17, 56.25) == 39.4
    assert final_weighted_score(0.0, 0.0) == 0.0


def test_excellent_needs_thresholds_and_final_floor():
    strong = {c: 9.0 for c in LAW_EXAMPLE}

    assert qualifies_as_excellent(strong, 75.0)
    assert not qualifies_as_excellent(strong, 74.9)
    # category gates alone are not enough
    assert meets_excellent_criteria(strong)
    assert not qualifies_as_excellent(strong, 20.0)
    assert not qualifies_as_excellent(LAW_EXAMPLE, 95.0)
