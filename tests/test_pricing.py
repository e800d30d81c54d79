from app.modules.pricing import table as pricing


def test_known_procedure_prices():
    assert pricing.get_market_price("botox") == 1200
    assert pricing.get_offered_price("botox") == 750
    assert pricing.get_price_range("hydrafacial") == pricing.PriceRange(200, 500)
    assert pricing.is_known_procedure("ultherapy")


def test_unknown_procedure_has_no_prices():
    assert pricing.get_market_price("teeth-whitening") is None
    assert pricing.get_offered_price("teeth-whitening") is None
    assert pricing.get_price_range("teeth-whitening") is None
    assert not pricing.is_known_procedure("teeth-whitening")


def test_savings():
    assert pricing.calculate_savings("laser-resurfacing") == 850
    assert pricing.calculate_savings("teeth-whitening") == 0


def test_format_price():
    assert pricing.format_price("botox") == "£750"
    assert pricing.format_price("laser-resurfacing") == "£1,650"
    assert pricing.format_price("teeth-whitening") == "Contact for pricing"


def test_investment_tiers_fall_back_to_signature():
    assert pricing.get_investment_tier("premier").range == "$1,500 – $4,000"
    assert pricing.get_investment_tier("exclusive").label == "Exclusive"
    assert pricing.get_investment_tier(None).key == "signature"
    assert pricing.get_investment_tier("platinum").key == "signature"
