"""Yahoo Finance market data provider (v8 chart API).

Fetches daily candles over HTTP and parses the chart JSON into a
PriceSeries. Closes prefer the split/dividend adjusted series when Yahoo
provides one. Candle dates are exchange-local (America/New_York).

API shape (abridged):
    {"chart": {"result": [{
        "meta": {"symbol": "SPY", "shortName": "...", "instrumentType": "ETF"},
        "timestamp": [1704205800, ...],
        "indicators": {
            "quote": [{"open": [...], "high": [...], "low": [...],
                       "close": [...], "volume": [...]}],
            "adjclose": [{"adjclose": [...]}]
        }
    }]}}
"""

from __future__ import annotations

import asyncio
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import httpx

from strategylab.backtesting.exceptions import ConfigValidationError
from strategylab.backtesting.models import Candle, Instrument, PriceSeries
from strategylab.backtesting.precision import to_decimal
from strategylab.common.config import Settings, get_settings
from strategylab.common.logging import get_logger
from strategylab.common.metrics import MARKET_DATA_FETCHES_TOTAL
from strategylab.market_data.exceptions import DataFetchError
from strategylab.market_data.rate_limiter import RateLimiter, yahoo_limiter

logger = get_logger("MARKET")

CHART_PATH = "/v8/finance/chart/{symbol}"
EXCHANGE_TZ = ZoneInfo("America/New_York")
VALIDATION_LOOKBACK_DAYS = 7

_ZERO = Decimal("0")


def _epoch_seconds(day: date) -> int:
    """Midnight UTC of ``day`` as a Unix timestamp."""
    return int(datetime.combine(day, time.min, tzinfo=UTC).timestamp())


def build_chart_params(start: date, end: date) -> dict:
    """Query parameters covering ``[start, end]``; period2 is exclusive."""
    return {
        "period1": _epoch_seconds(start),
        "period2": _epoch_seconds(end + timedelta(days=1)),
        "interval": "1d",
    }


class YahooFinanceProvider:
    """MarketDataProvider backed by the Yahoo Finance chart API.

    Creates a new httpx.AsyncClient per call, so the provider holds no
    connection state and can be shared freely.

    Args:
        settings: Application settings; defaults to ``get_settings()``.
        limiter: Rate limiter shared by all outbound calls.
    """

    def __init__(self, settings: Settings | None = None, limiter: RateLimiter | None = None) -> None:
        self.settings = settings or get_settings()
        self.limiter = limiter or yahoo_limiter

    async def get_daily_series(self, symbol: str, start: date, end: date) -> PriceSeries:
        """Fetch daily candles for ``symbol`` over ``[start, end]``.

        Raises:
            DataFetchError: If every attempt fails or the payload is unusable.
        """
        logger.info(
            "Fetching daily series",
            extra={"data": {"symbol": symbol, "start": str(start), "end": str(end)}},
        )
        payload = await self._fetch_chart(
            symbol,
            build_chart_params(start, end),
            max_attempts=self.settings.yahoo_series_max_attempts,
            operation="series",
        )
        series = parse_chart_response(symbol, payload)
        logger.info(
            "Fetched daily series",
            extra={"data": {"symbol": series.instrument.symbol, "candles": len(series)}},
        )
        return series

    async def validate_symbol(self, symbol: str) -> Instrument | None:
        """Confirm ``symbol`` exists by fetching the last week of data.

        Returns None (and logs a warning) on any fetch or parse failure.
        """
        end = date.today()
        start = end - timedelta(days=VALIDATION_LOOKBACK_DAYS)
        try:
            payload = await self._fetch_chart(
                symbol,
                build_chart_params(start, end),
                max_attempts=self.settings.yahoo_validate_max_attempts,
                operation="validate",
            )
            return parse_instrument(symbol, payload)
        except (DataFetchError, ConfigValidationError) as exc:
            logger.warning(
                "Failed to validate symbol",
                extra={"data": {"symbol": symbol, "error": str(exc)}},
            )
            return None

    async def _fetch_chart(
        self,
        symbol: str,
        params: dict,
        max_attempts: int,
        operation: str,
    ) -> dict:
        """GET the chart endpoint with retry, backoff and rate limiting.

        Server errors, 429 and network errors are retried with a wait of
        ``2**attempt * backoff_base`` seconds. Other 4xx responses fail
        immediately.

        Raises:
            DataFetchError: If all attempts are exhausted.
        """
        url = self.settings.yahoo_base_url.rstrip("/") + CHART_PATH.format(symbol=symbol)
        headers = {"User-Agent": self.settings.yahoo_user_agent}
        last_error: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            try:
                await self.limiter.acquire()
                async with httpx.AsyncClient(timeout=self.settings.yahoo_timeout_seconds) as client:
                    response = await client.get(url, params=params, headers=headers)
                    response.raise_for_status()
                    payload = response.json()
                MARKET_DATA_FETCHES_TOTAL.labels(operation=operation, outcome="success").inc()
                return payload

            except httpx.HTTPStatusError as exc:
                last_error = exc
                status_code = exc.response.status_code
                retryable = status_code >= 500 or status_code == 429

                if retryable and attempt < max_attempts:
                    await self._backoff(symbol, attempt, max_attempts, f"HTTP {status_code}")
                    continue

                MARKET_DATA_FETCHES_TOTAL.labels(operation=operation, outcome="error").inc()
                logger.error(
                    "Yahoo Finance HTTP error",
                    extra={
                        "data": {
                            "symbol": symbol,
                            "status_code": status_code,
                            "attempts": attempt,
                        }
                    },
                )
                raise DataFetchError(
                    f"Failed to fetch data for {symbol}: HTTP {status_code} "
                    f"after {attempt} attempts",
                    {"symbol": symbol, "status_code": status_code},
                ) from exc

            except (httpx.RequestError, ValueError) as exc:
                # ValueError covers a body that is not valid JSON
                last_error = exc

                if attempt < max_attempts:
                    await self._backoff(symbol, attempt, max_attempts, str(exc))
                    continue

                MARKET_DATA_FETCHES_TOTAL.labels(operation=operation, outcome="error").inc()
                logger.error(
                    "Yahoo Finance request failed, all retries exhausted",
                    extra={"data": {"symbol": symbol, "error": str(exc)}},
                )
                raise DataFetchError(
                    f"Failed to fetch data for {symbol} after {attempt} attempts: {exc}",
                    {"symbol": symbol},
                ) from exc

        raise DataFetchError(
            f"All Yahoo Finance retries exhausted for {symbol}", {"symbol": symbol}
        ) from last_error

    async def _backoff(self, symbol: str, attempt: int, max_attempts: int, reason: str) -> None:
        wait = (2**attempt) * self.settings.yahoo_backoff_base_seconds
        logger.warning(
            f"Attempt {attempt}/{max_attempts} failed, retrying",
            extra={
                "data": {
                    "symbol": symbol,
                    "reason": reason,
                    "attempt": attempt,
                    "wait_seconds": wait,
                }
            },
        )
        await asyncio.sleep(wait)


# ─── Parsing ───


def _first_result(symbol: str, payload: dict) -> dict:
    chart = payload.get("chart") if isinstance(payload, dict) else None
    results = chart.get("result") if isinstance(chart, dict) else None
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        raise DataFetchError(f"No chart data returned for {symbol}", {"symbol": symbol})
    return results[0]


def _value_at(values: list | None, index: int):  # noqa: ANN202
    if not values or index >= len(values):
        return None
    return values[index]


def _meta(result: dict) -> dict:
    meta = result.get("meta")
    return meta if isinstance(meta, dict) else {}


def _price(value) -> Decimal:  # noqa: ANN001
    return _ZERO if value is None else to_decimal(value)


def parse_chart_response(symbol: str, payload: dict) -> PriceSeries:
    """Convert a chart API payload into a PriceSeries.

    Entries whose close is null, zero or negative are skipped. Null
    open/high/low become 0 and a null volume becomes 0.

    Raises:
        DataFetchError: If the payload has no result, no timestamps or no
            usable candles.
    """
    result = _first_result(symbol, payload)

    timestamps = result.get("timestamp")
    if not isinstance(timestamps, list):
        raise DataFetchError(f"No timestamps in response for {symbol}", {"symbol": symbol})

    try:
        indicators = result.get("indicators") or {}
        quote = (indicators.get("quote") or [{}])[0]
        adj_blocks = indicators.get("adjclose") or []
        adj_closes = adj_blocks[0].get("adjclose") if adj_blocks else None

        closes = quote.get("close") or []
        candles: list[Candle] = []
        for i, ts in enumerate(timestamps):
            raw_close = _value_at(closes, i)
            if raw_close is None:
                continue

            adj_close = _value_at(adj_closes, i)
            close = to_decimal(adj_close if adj_close is not None else raw_close)
            if close <= 0:
                continue

            volume = _value_at(quote.get("volume"), i)
            candles.append(
                Candle(
                    date=datetime.fromtimestamp(int(ts), tz=EXCHANGE_TZ).date(),
                    open=_price(_value_at(quote.get("open"), i)),
                    high=_price(_value_at(quote.get("high"), i)),
                    low=_price(_value_at(quote.get("low"), i)),
                    close=close,
                    volume=0 if volume is None else int(volume),
                )
            )

        meta = _meta(result)
        instrument = Instrument(
            symbol=symbol.upper(),
            name=meta.get("shortName") or symbol,
            asset_type=meta.get("instrumentType") or "UNKNOWN",
        )
    except (AttributeError, IndexError, KeyError, TypeError, ValueError, ArithmeticError) as exc:
        raise DataFetchError(
            f"Failed to parse Yahoo Finance response for {symbol}", {"symbol": symbol}
        ) from exc

    if not candles:
        raise DataFetchError(f"No valid candles parsed for {symbol}", {"symbol": symbol})

    return PriceSeries(instrument=instrument, candles=tuple(candles))


def parse_instrument(symbol: str, payload: dict) -> Instrument:
    """Build an Instrument from the chart ``meta`` block.

    Raises:
        DataFetchError: If the payload has no result.
    """
    meta = _meta(_first_result(symbol, payload))
    resolved = meta.get("symbol") or symbol
    return Instrument(
        symbol=resolved,
        name=meta.get("shortName") or resolved,
        asset_type=meta.get("instrumentType") or "UNKNOWN",
    )
