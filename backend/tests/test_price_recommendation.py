import pytest

from geardesk.services.price_recommendation import confidence_for, summarize_prices


def test_no_samples_gives_empty_recommendation():
    result = summarize_prices([("GOOD", 0)])

    assert result.sample_size == 0
    assert result.recommended_price_cents == 0
    assert result.confidence == "low"


def test_summary_statistics():
    samples = [("EXCELLENT", 1200000), ("GOOD", 900000), ("GOOD", 1000000), ("MINT", 1500000)]

    result = summarize_prices(samples)

    assert result.sample_size == 4
    assert result.average_price_cents == 1150000
    assert result.median_price_cents == 1100000
    assert result.min_price_cents == 900000
    assert result.max_price_cents == 1500000
    assert result.prices_by_condition == {"EXCELLENT": 1200000, "GOOD": 950000, "MINT": 1500000}
    assert result.recommended_price_cents == 1150000
    assert result.confidence == "medium"


def test_condition_average_is_recommended_when_known():
    samples = [("GOOD", 900000), ("GOOD", 1000000), ("MINT", 1500000)]

    assert summarize_prices(samples, condition="GOOD").recommended_price_cents == 950000
    assert summarize_prices(samples, condition="POOR").recommended_price_cents == 1133333


@pytest.mark.parametrize("size, level", [(0, "low"), (1, "low"), (2, "medium"), (4, "medium"), (5, "high")])
def test_confidence_for(size, level):
    assert confidence_for(size) == level
