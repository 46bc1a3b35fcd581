"""Binary-search probe for the liquidity depth of a route."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Sequence

from ..adapters.base import BaseBridgeAdapter, QuoteResult
from ..constants import (
    LIQUIDITY_MAX_AMOUNT,
    LIQUIDITY_MIN_AMOUNT,
    LIQUIDITY_SEARCH_ITERATIONS,
)
from ..domain import LiquidityThreshold, Route
from ..errors import BridgeDataError, ConfigurationError
from ..units import expected_output, slippage_bps, to_smallest_units

logger = logging.getLogger(__name__)


class QuoteSession:
    """Quotes for one route's probing session, cached by probed amount.

    Failed quotes are cached as ``None`` so a later search treats the same
    amount as over budget without calling upstream again.
    """

    def __init__(self, quoter: BaseBridgeAdapter, route: Route):
        self.quoter = quoter
        self.route = route
        self.cache: dict[int, QuoteResult | None] = {}
        self.upstream_calls = 0
        self.successes = 0
        self.last_error: BridgeDataError | None = None

    async def quote(self, amount_in: int) -> QuoteResult | None:
        if amount_in in self.cache:
            return self.cache[amount_in]

        self.upstream_calls += 1
        result: QuoteResult | None
        try:
            result = await self.quoter.fetch_quote(self.route, amount_in)
            self.successes += 1
        except ConfigurationError:
            raise
        except BridgeDataError as e:
            logger.debug(
                "Quote for %s at %d failed, treating as over budget: %s",
                self.route.label,
                amount_in,
                e,
            )
            self.last_error = e
            result = None

        self.cache[amount_in] = result
        return result


class LiquidityProbe:
    """Finds the largest input amount a route absorbs within a slippage budget.

    Each threshold is searched independently over
    ``[min_amount, max_amount]`` whole tokens for a fixed number of
    iterations. A failed quote counts as exceeding the threshold.
    """

    def __init__(
        self,
        quoter: BaseBridgeAdapter,
        *,
        min_amount: int = LIQUIDITY_MIN_AMOUNT,
        max_amount: int = LIQUIDITY_MAX_AMOUNT,
        iterations: int = LIQUIDITY_SEARCH_ITERATIONS,
    ):
        if min_amount <= 0 or min_amount >= max_amount:
            raise ValueError(
                f"Probe bounds must satisfy 0 < min < max, got [{min_amount}, {max_amount}]"
            )
        self.quoter = quoter
        self.min_amount = Decimal(min_amount)
        self.max_amount = Decimal(max_amount)
        self.iterations = iterations

    async def slippage_at(
        self, session: QuoteSession, amount_in: int
    ) -> Decimal | None:
        """Realized slippage in bps at ``amount_in``, or None if the quote failed."""
        quote = await session.quote(amount_in)
        if quote is None:
            return None
        route = session.route
        expected = expected_output(
            amount_in, route.source.decimals, route.destination.decimals
        )
        return slippage_bps(expected, quote.amount_out)

    async def search(self, session: QuoteSession, threshold_bps: int) -> int:
        """Largest probed amount (smallest units) within ``threshold_bps``.

        Returns 0 when no probed amount stays within budget.
        """
        decimals = session.route.source.decimals
        low, high = self.min_amount, self.max_amount
        best = 0

        for _ in range(self.iterations):
            mid = (low + high) / 2
            amount_in = to_smallest_units(mid, decimals)
            slippage = await self.slippage_at(session, amount_in)
            if slippage is not None and slippage <= threshold_bps:
                best = amount_in
                low = mid
            else:
                high = mid

        return best

    async def probe(
        self, route: Route, thresholds_bps: Sequence[int]
    ) -> tuple[LiquidityThreshold, ...]:
        """Probe every threshold for ``route`` sharing one quote session.

        Raises:
            ConfigurationError: Immediately, if upstream rejects credentials.
            BridgeDataError: The last quote error, if not a single quote in
                the session succeeded.
        """
        session = QuoteSession(self.quoter, route)
        results = []
        for bps in thresholds_bps:
            max_amount_in = await self.search(session, bps)
            logger.debug(
                "Liquidity %s at %dbps: %d", route.label, bps, max_amount_in
            )
            results.append(
                LiquidityThreshold(max_amount_in=max_amount_in, slippage_bps=bps)
            )

        if session.successes == 0 and session.last_error is not None:
            raise session.last_error

        logger.debug(
            "Probed %s with %d upstream quotes for %d thresholds",
            route.label,
            session.upstream_calls,
            len(results),
        )
        return tuple(results)
