"""
Market risk statistics on closing-price series.

All functions are pure. Volatility and drawdown are returned in percent;
standard deviations are population (divide by n).
"""

from collections.abc import Sequence

import numpy as np

TRADING_DAYS_PER_YEAR = 252

MIN_BETA_OBSERVATIONS = 30
VOL_30D_WINDOW, VOL_30D_MIN = 30, 20
VOL_90D_WINDOW, VOL_90D_MIN = 90, 60


def _valid_pairs(prices: Sequence[float | None]) -> tuple[np.ndarray, np.ndarray]:
    """(index of current bar, return) for every consecutive pair with usable prices."""
    values = np.array([np.nan if p is None else p for p in prices], dtype=float)
    if values.size < 2:
        return np.array([], dtype=int), np.array([], dtype=float)

    prev, cur = values[:-1], values[1:]
    usable = np.isfinite(prev) & np.isfinite(cur) & (prev > 0) & (cur != 0)
    idx = np.nonzero(usable)[0] + 1
    returns = (cur[usable] - prev[usable]) / prev[usable]
    return idx, returns


def daily_returns(prices: Sequence[float | None]) -> np.ndarray:
    """
    Simple returns between consecutive closes.

    Pairs with a zero or missing price are skipped, not bridged.
    """
    return _valid_pairs(prices)[1]


def timestamped_returns(
    timestamps: Sequence[int], prices: Sequence[float | None]
) -> dict[int, float]:
    """Daily returns keyed by the timestamp of the later bar."""
    idx, returns = _valid_pairs(prices)
    return {int(timestamps[i]): float(r) for i, r in zip(idx, returns)}


def annualized_volatility(returns: np.ndarray) -> float:
    """Population std of daily returns x sqrt(252), as a percentage."""
    if returns.size == 0:
        return 0.0
    return float(np.std(returns) * np.sqrt(TRADING_DAYS_PER_YEAR) * 100)


def trailing_volatility(returns: np.ndarray, window: int, min_observations: int) -> float | None:
    """Annualized volatility of the trailing window, None below min_observations."""
    tail = returns[-window:]
    if tail.size < min_observations:
        return None
    return annualized_volatility(tail)


def beta(stock_returns: np.ndarray, benchmark_returns: np.ndarray) -> float | None:
    """
    cov(stock, benchmark) / var(benchmark) on the trailing common length.

    None with fewer than 30 observations in either series or a flat benchmark.
    """
    if stock_returns.size < MIN_BETA_OBSERVATIONS or benchmark_returns.size < MIN_BETA_OBSERVATIONS:
        return None

    length = min(stock_returns.size, benchmark_returns.size)
    stock = stock_returns[-length:]
    bench = benchmark_returns[-length:]

    bench_dev = bench - bench.mean()
    variance = float(np.mean(bench_dev**2))
    if variance == 0:
        return None
    covariance = float(np.mean((stock - stock.mean()) * bench_dev))
    return covariance / variance


def aligned_beta(stock: dict[int, float], benchmark: dict[int, float]) -> float | None:
    """
    Beta over returns sharing a bar timestamp.

    When the series share no timestamps at all (different sources), falls back
    to trailing positional alignment.
    """
    common = sorted(stock.keys() & benchmark.keys())
    if not common:
        return beta(
            np.array([stock[t] for t in sorted(stock)], dtype=float),
            np.array([benchmark[t] for t in sorted(benchmark)], dtype=float),
        )
    return beta(
        np.array([stock[t] for t in common], dtype=float),
        np.array([benchmark[t] for t in common], dtype=float),
    )


def max_drawdown(prices: Sequence[float | None]) -> float | None:
    """Largest peak-to-trough decline over the series, in percent; None if empty."""
    values = np.array([p for p in prices if p is not None], dtype=float)
    values = values[np.isfinite(values)]
    if values.size == 0:
        return None

    peaks = np.maximum.accumulate(values)
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdowns = np.where(peaks > 0, (peaks - values) / peaks, 0.0)
    return float(drawdowns.max() * 100)
