import pytest

from quote_gateway.exceptions import DataError
from quote_gateway.internal_metrics import MetricsCollector
from quote_gateway.schemas.quote import VolumeSignal
from quote_gateway.services.quote_service import QuoteService


@pytest.mark.asyncio
async def test_complete_primary_data_skips_fallback(make_primary, make_fallback, chart_payload, fundamentals_payload, fallback_responses):
    fallback = make_fallback(fallback_responses)
    service = QuoteService(make_primary(chart_payload, fundamentals_payload), fallback)

    quote = await service.get_detailed_quote("ACME")

    assert fallback.calls == []
    assert quote.symbol == "ACME"
    assert quote.price == 105.0
    assert quote.change_percent == pytest.approx(5.0)
    assert quote.volume == 3000
    assert quote.avg_volume == 1000
    assert quote.vwap == 100
    assert quote.volume_signal == VolumeSignal.BULLISH
    assert len(quote.history) == 30
    assert quote.market_cap == 105_000_000
    assert quote.pe_ratio == 21.0
    assert quote.peg_ratio == 1.5
    assert quote.eps == 5.0
    assert quote.book_value == 20.0
    assert quote.revenue_growth == 0.08
    assert quote.dividend_rate == 1.0
    assert quote.target_mean_price == 120.0
    assert quote.recommendation_key == "buy"
    assert quote.valuation_fields.revenue_ttm == 340
    assert quote.valuation_fields.total_debt == 500


@pytest.mark.asyncio
async def test_missing_fundamentals_degrade_to_fallback(make_primary, make_fallback, chart_payload, fallback_responses):
    primary = make_primary(chart_payload, fundamentals_error=ConnectionError("quoteSummary down"))
    fallback = make_fallback(fallback_responses)
    metrics = MetricsCollector()
    service = QuoteService(primary, fallback, metrics=metrics)

    quote = await service.get_detailed_quote("ACME")

    assert len(fallback.calls) == 5
    assert quote.market_cap == 2_100_000_000
    assert quote.eps == pytest.approx(5.0)
    assert quote.pe_ratio == pytest.approx(21.0)
    assert quote.peg_ratio is None
    assert quote.revenue_growth == 0.15
    assert quote.recommendation_key == "N/A"
    assert quote.valuation_fields.cash_and_equivalents == 1_500_000
    assert quote.valuation_fields.price_to_sales == 0
    assert metrics.global_metrics()["fallback_trigger_rate"] == 1.0


@pytest.mark.asyncio
async def test_fallback_sub_fetch_failures_are_soft(make_primary, make_fallback, chart_payload, fallback_responses):
    fallback = make_fallback(fallback_responses, failing={"summary", "eps", "income", "balance", "cash_flow"})
    service = QuoteService(make_primary(chart_payload, {}), fallback)

    quote = await service.get_detailed_quote("ACME")

    assert quote.valuation_fields.revenue_qtr == 0
    assert quote.market_cap == 0
    assert quote.pe_ratio is None
    assert quote.eps is None
    assert quote.revenue_growth == 0.10


@pytest.mark.asyncio
async def test_chart_failure_is_a_hard_failure(make_primary, make_fallback, chart_payload, fallback_responses):
    fallback = make_fallback(fallback_responses)
    metrics = MetricsCollector()
    service = QuoteService(make_primary(chart_payload, chart_error=ConnectionError("404")), fallback, metrics=metrics)

    with pytest.raises(DataError) as excinfo:
        await service.get_detailed_quote("NOPE")

    assert excinfo.value.symbol == "NOPE"
    assert fallback.calls == []
    assert metrics.global_metrics()["quote_failures"] == 1


@pytest.mark.asyncio
async def test_empty_chart_means_unknown_symbol(make_primary, make_fallback, fallback_responses):
    service = QuoteService(make_primary({}), make_fallback(fallback_responses))
    with pytest.raises(DataError, match="Symbol not found"):
        await service.get_detailed_quote("NOPE")


@pytest.mark.asyncio
async def test_zero_previous_close_surfaces_as_data_error(make_primary, make_fallback, chart_payload, fundamentals_payload, fallback_responses):
    chart_payload["meta"]["chartPreviousClose"] = 0
    service = QuoteService(make_primary(chart_payload, fundamentals_payload), make_fallback(fallback_responses))
    with pytest.raises(DataError):
        await service.get_detailed_quote("ACME")


@pytest.mark.asyncio
async def test_quotes_are_recomputed_per_request(make_primary, make_fallback, chart_payload, fundamentals_payload, fallback_responses):
    primary = make_primary(chart_payload, fundamentals_payload)
    service = QuoteService(primary, make_fallback(fallback_responses))

    first = await service.get_detailed_quote("ACME")
    primary.chart["meta"]["regularMarketPrice"] = 95.0
    second = await service.get_detailed_quote("ACME")

    assert first.volume_signal == VolumeSignal.BULLISH
    assert second.volume_signal == VolumeSignal.BEARISH
    with pytest.raises(Exception):
        second.price = 1.0


@pytest.mark.asyncio
async def test_malformed_fundamentals_bundle_still_returns_quote(make_primary, make_fallback, chart_payload, fallback_responses):
    fundamentals = {
        "incomeStatementHistoryQuarterly": {"incomeStatementHistory": [None, "bogus"]},
        "financialData": ["unexpected"],
        "assetProfile": "unexpected",
    }
    service = QuoteService(make_primary(chart_payload, fundamentals), make_fallback(fallback_responses))

    quote = await service.get_detailed_quote("ACME")

    assert quote.price == 105.0
    assert quote.description == ""
    assert quote.valuation_fields.cash_and_equivalents == 1_500_000


@pytest.mark.asyncio
async def test_fundamentals_parse_failure_reparses_empty_bundle(monkeypatch, make_primary, make_fallback, chart_payload, fundamentals_payload, fallback_responses):
    from quote_gateway.services import quote_service

    real_parse = quote_service.parse_fundamentals
    seen = []

    def flaky_parse(draft, bundle):
        seen.append(bundle)
        if bundle:
            raise KeyError("unexpected layout")
        return real_parse(draft, bundle)

    monkeypatch.setattr(quote_service, "parse_fundamentals", flaky_parse)
    fallback = make_fallback(fallback_responses)
    service = QuoteService(make_primary(chart_payload, fundamentals_payload), fallback)

    quote = await service.get_detailed_quote("ACME")

    assert seen == [fundamentals_payload, {}]
    assert quote.price == 105.0
    assert len(fallback.calls) == 5


@pytest.mark.asyncio
async def test_fallback_sub_fetches_are_recorded_individually(make_primary, make_fallback, chart_payload, fallback_responses):
    fallback = make_fallback(fallback_responses, failing={"eps", "balance"})
    metrics = MetricsCollector()
    service = QuoteService(make_primary(chart_payload, {}), fallback, metrics=metrics)

    outcome = await service.build_quote("ACME")

    status = metrics.provider_status()[fallback.name]
    assert status["total_requests"] == 5
    assert status["failed_requests"] == 2
    assert outcome.fallback_triggered is True
    assert "revenue_qtr" in outcome.patched_fields
