# ===============================================
# tests/test_bias.py
# Teaching bias, category distribution, stats.
# ===============================================

import pytest

from careerrag.bias import BiasDetector, RecommendedItem, classify_item, extract_recommendations


def _items(n_teaching, n_other):
    teaching = [RecommendedItem(f"Teacher {i}", category="Education") for i in range(n_teaching)]
    other = [RecommendedItem(f"Engineer {i}", category="Engineering") for i in range(n_other)]
    return teaching + other


def test_seven_of_ten_teaching_items():
    result = BiasDetector().detect_teaching_bias(_items(7, 3))
    assert result.has_bias is True
    assert result.severity == pytest.approx(0.25)
    assert result.details["teaching_percentage"] == 70
    assert result.details["severity"] == 25


def test_teaching_detected_by_keyword_not_category():
    items = [
        RecommendedItem("High School Maths Educator"),
        RecommendedItem("University Lecturer"),
        RecommendedItem("Private tutor"),
        RecommendedItem("Data Scientist", description="work with data"),
    ]
    result = BiasDetector().detect_teaching_bias(items)
    assert result.has_bias is True
    assert result.details["teaching_items"] == 3


def test_at_threshold_is_not_bias():
    result = BiasDetector().detect_teaching_bias(_items(6, 4))
    assert result.has_bias is False
    assert result.severity == 0.0


@pytest.mark.parametrize("n", [0, 1, 2])
def test_insufficient_data(n):
    detector = BiasDetector()
    result = detector.detect_teaching_bias(_items(n, 0))
    assert result.has_bias is False
    assert result.severity == 0.0
    assert result.details["reason"] == "insufficient_data"
    assert detector.get_bias_stats()["total_analyses"] == 0


def test_empty_distribution():
    dist = BiasDetector().analyze_category_distribution([])
    assert dist.categories == ()
    assert dist.dominant_category is None
    assert dist.diversity == 0
    assert dist.has_dominance is False
    assert dist.distribution == {}


def test_distribution_dominance_and_diversity():
    dist = BiasDetector().analyze_category_distribution(_items(7, 3))
    assert dist.dominant_category == "Education"
    assert dist.dominance_percentage == 70
    assert dist.has_dominance is True
    assert dist.diversity == 20  # 2 categories / min(10, 10)
    assert dist.distribution["Engineering"]["count"] == 3
    assert dist.distribution["Engineering"]["percentage"] == 30


def test_uncategorized_fallback():
    assert classify_item(RecommendedItem("Zookeeper of rare llamas")) == "Uncategorized"
    assert classify_item(RecommendedItem("Registered Nurse")) == "Healthcare"
    assert classify_item(RecommendedItem("Anything", category="Custom")) == "Custom"


def test_stats_and_reset():
    detector = BiasDetector()
    detector.analyze(_items(7, 3))
    detector.analyze(_items(1, 4))
    stats = detector.get_bias_stats()
    assert stats["total_analyses"] == 2
    assert stats["teaching_bias_rate"] == 50
    assert stats["bias_detection_rate"] == 50
    assert stats["category_dominance_rate"] == 100  # Education 70%, Engineering 80%

    detector.reset_stats()
    assert detector.get_bias_stats() == {
        "total_analyses": 0,
        "bias_detected": 0,
        "teaching_bias_count": 0,
        "category_dominance_count": 0,
        "bias_detection_rate": 0,
        "teaching_bias_rate": 0,
        "category_dominance_rate": 0,
    }


def test_counters_are_per_instance():
    a, b = BiasDetector(), BiasDetector()
    a.detect_teaching_bias(_items(5, 0))
    assert a.get_bias_stats()["total_analyses"] == 1
    assert b.get_bias_stats()["total_analyses"] == 0


def test_report_combines_checks():
    report = BiasDetector().analyze(_items(7, 3), subjects={"Mathematics"})
    assert report.has_bias
    assert report.severity == pytest.approx(0.25)
    assert report.dominant_category == "Education"
    assert report.stem_profile is True


def test_extract_recommendations_from_prose():
    text = (
        "Based on your marks I recommend Software Engineering because you enjoy coding. "
        "You could also become a Registered Nurse, which suits your caring nature. "
        "Consider a career in Chartered Accounting. Explore it."
    )
    items = extract_recommendations(text)
    assert [i.title for i in items] == ["Software Engineering", "Registered Nurse", "Chartered Accounting"]
    assert [i.confidence for i in items] == [0.9, 0.85, 0.8]
    assert items[1].category == "Healthcare"


def test_extract_recommendations_caps_at_five():
    text = " ".join(f"Consider Career Number{chr(65 + i)}." for i in range(8))
    assert len(extract_recommendations(text)) == 5


def test_too_few_items_make_no_bias_claim():
    report = BiasDetector().analyze([RecommendedItem("Nurse", category="Healthcare")])
    assert report.has_bias is False
    assert report.severity == 0.0
    assert report.teaching.details["reason"] == "insufficient_data"
    assert report.dominant_category == "Healthcare"
    assert report.distribution.has_dominance is False


def test_rates_never_exceed_100():
    detector = BiasDetector()
    pair = [RecommendedItem("Nurse", category="Healthcare"), RecommendedItem("Pharmacist", category="Healthcare")]
    detector.analyze(pair)
    detector.analyze(pair)
    detector.analyze([
        RecommendedItem("Nurse", category="Healthcare"),
        RecommendedItem("Engineer", category="Engineering"),
        RecommendedItem("Lawyer", category="Law"),
    ])
    stats = detector.get_bias_stats()
    assert stats["total_analyses"] == 1
    assert stats["category_dominance_count"] == 0
    for rate in ("bias_detection_rate", "teaching_bias_rate", "category_dominance_rate"):
        assert 0 <= stats[rate] <= 100


def test_dominance_severity_uses_unrounded_share():
    items = [
        RecommendedItem("Civil Engineer", category="Engineering"),
        RecommendedItem("Mining Engineer", category="Engineering"),
        RecommendedItem("Nurse", category="Healthcare"),
    ]
    report = BiasDetector().analyze(items)
    assert report.distribution.dominance_percentage == 67
    assert report.severity == pytest.approx((2 / 3 - 0.6) / 0.4)
