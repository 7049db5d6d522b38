"""GBM-based crypto market simulator."""

from __future__ import annotations

import logging
import math
import random
from collections import deque

import numpy as np

from .constants import SPARKLINE_MAX_SAMPLES
from .interface import MarketDataGateway
from .models import AssetRecord
from .seed_assets import (
    ALT_ALT_CORR,
    ASSET_PARAMS,
    CORRELATION_GROUPS,
    DEFAULT_PARAMS,
    INTRA_MAJORS_CORR,
    MAJOR_ALT_CORR,
    SEED_ASSETS,
    STABLE_CORR,
)

logger = logging.getLogger(__name__)

# Samples 24 hours apart in an hourly sparkline
_SAMPLES_PER_DAY = 24


class GBMSimulator:
    """Geometric Brownian Motion simulator for correlated crypto prices.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current price
        mu     = annualized drift (expected return)
        sigma  = annualized volatility
        dt     = time step as fraction of a calendar year
        Z      = correlated standard normal random variable

    Each step is one hour of a 24/7 market, so the kept price history doubles
    as the asset's 7-day hourly sparkline.
    """

    HOURS_PER_YEAR = 365 * 24  # 8,760
    DEFAULT_DT = 1 / HOURS_PER_YEAR  # ~1.14e-4

    def __init__(
        self,
        asset_ids: list[str],
        dt: float = DEFAULT_DT,
        event_probability: float = 0.001,
        history: int = SPARKLINE_MAX_SAMPLES,
    ) -> None:
        self._dt = dt
        self._event_prob = event_probability
        self._history_len = history

        # Per-asset state
        self._ids: list[str] = []
        self._meta: dict[str, dict] = {}
        self._prices: dict[str, float] = {}
        self._params: dict[str, dict[str, float]] = {}
        self._history: dict[str, deque[float]] = {}

        # Cholesky decomposition of the correlation matrix (for correlated moves)
        self._cholesky: np.ndarray | None = None

        for asset_id in asset_ids:
            self._seed_asset(asset_id)
        self._rebuild_cholesky()

        # Warm up so every asset starts with a full sparkline
        for _ in range(history - 1):
            self.step()

    # --- Public API ---

    def step(self) -> dict[str, float]:
        """Advance all assets by one hour. Returns {asset_id: new_price}."""
        n = len(self._ids)
        if n == 0:
            return {}

        z_independent = np.random.standard_normal(n)
        if self._cholesky is not None:
            z_correlated = self._cholesky @ z_independent
        else:
            z_correlated = z_independent

        result: dict[str, float] = {}
        for i, asset_id in enumerate(self._ids):
            params = self._params[asset_id]
            mu = params["mu"]
            sigma = params["sigma"]

            drift = (mu - 0.5 * sigma**2) * self._dt
            diffusion = sigma * math.sqrt(self._dt) * z_correlated[i]
            self._prices[asset_id] *= math.exp(drift + diffusion)

            # Random event: listings, hacks, liquidations
            if sigma > 0.05 and random.random() < self._event_prob:
                shock_magnitude = random.uniform(0.03, 0.08)
                shock_sign = random.choice([-1, 1])
                self._prices[asset_id] *= 1 + shock_magnitude * shock_sign
                logger.debug(
                    "Random event on %s: %.1f%% %s",
                    asset_id,
                    shock_magnitude * 100,
                    "up" if shock_sign > 0 else "down",
                )

            self._history[asset_id].append(self._prices[asset_id])
            result[asset_id] = self._prices[asset_id]

        return result

    def snapshot(self) -> list[AssetRecord]:
        """Current state of every asset, ranked by market cap like the upstream."""
        records = [self._record(asset_id) for asset_id in self._ids]
        records.sort(key=lambda r: r.market_cap, reverse=True)
        return records

    # --- Internals ---

    def _record(self, asset_id: str) -> AssetRecord:
        meta = self._meta[asset_id]
        price = self._prices[asset_id]
        history = self._history[asset_id]

        day_ago = history[-_SAMPLES_PER_DAY - 1] if len(history) > _SAMPLES_PER_DAY else history[0]
        change_pct = (price - day_ago) / day_ago * 100 if day_ago else 0.0

        supply = float(meta["supply"])
        market_cap = price * supply
        # Volume jitters around its typical share of market cap, never negative
        jitter = max(0.1, 1 + 0.2 * random.gauss(0, 1))
        volume = market_cap * self._params[asset_id]["volume_ratio"] * jitter

        return AssetRecord(
            id=asset_id,
            symbol=meta["symbol"],
            name=meta["name"],
            image_url=meta.get("image", ""),
            current_price=price,
            price_change_24h=round(change_pct, 4),
            market_cap=market_cap,
            volume_24h=volume,
            circulating_supply=supply,
            sparkline=tuple(history),
        )

    def _seed_asset(self, asset_id: str) -> None:
        """Register an asset at its seed price. Unknown ids get generated metadata."""
        if asset_id in self._prices:
            return
        seed = SEED_ASSETS.get(asset_id) or {
            "symbol": asset_id[:4],
            "name": asset_id.replace("-", " ").title(),
            "price": random.uniform(0.1, 10.0),
            "supply": random.uniform(1e8, 1e10),
        }
        self._ids.append(asset_id)
        self._meta[asset_id] = seed
        self._prices[asset_id] = float(seed["price"])
        self._params[asset_id] = ASSET_PARAMS.get(asset_id, dict(DEFAULT_PARAMS))
        self._history[asset_id] = deque([self._prices[asset_id]], maxlen=self._history_len)

    def _rebuild_cholesky(self) -> None:
        """Rebuild the Cholesky decomposition of the asset correlation matrix.

        O(n^2) but n <= 100.
        """
        n = len(self._ids)
        if n <= 1:
            self._cholesky = None
            return

        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                rho = self._pairwise_correlation(self._ids[i], self._ids[j])
                corr[i, j] = rho
                corr[j, i] = rho

        self._cholesky = np.linalg.cholesky(corr)

    @staticmethod
    def _pairwise_correlation(a1: str, a2: str) -> float:
        """Determine correlation between two assets based on grouping.

        Correlation structure:
          - Stablecoin with anything: 0.0
          - Major with major:         0.8
          - Major with alt:           0.65
          - Alt with alt:             0.55
        """
        majors = CORRELATION_GROUPS["majors"]
        stables = CORRELATION_GROUPS["stablecoins"]

        if a1 in stables or a2 in stables:
            return STABLE_CORR
        if a1 in majors and a2 in majors:
            return INTRA_MAJORS_CORR
        if a1 in majors or a2 in majors:
            return MAJOR_ALT_CORR
        return ALT_ALT_CORR


class SimulatorGateway(MarketDataGateway):
    """MarketDataGateway backed by the GBM simulator.

    Every fetch advances the simulation by `steps_per_fetch` hours and
    returns the resulting snapshot. Useful offline and in demos.
    """

    def __init__(
        self,
        asset_ids: list[str] | None = None,
        steps_per_fetch: int = 1,
        event_probability: float = 0.001,
    ) -> None:
        self._asset_ids = list(asset_ids) if asset_ids is not None else list(SEED_ASSETS)
        self._steps = steps_per_fetch
        self._event_prob = event_probability
        self._sim: GBMSimulator | None = None

    async def load_assets(self) -> list[AssetRecord]:
        if self._sim is None:
            self._sim = GBMSimulator(self._asset_ids, event_probability=self._event_prob)
            logger.info("Simulator started with %d assets", len(self._asset_ids))
        for _ in range(self._steps):
            self._sim.step()
        return self._sim.snapshot()

    async def close(self) -> None:
        self._sim = None
        logger.info("Simulator stopped")
