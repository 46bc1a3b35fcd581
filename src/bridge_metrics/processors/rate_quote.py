from __future__ import annotations

from datetime import datetime

from ..adapters.base import QuoteResult
from ..domain import Provenance, RateQuote, Route
from ..units import derive_fee_usd, normalize_rate


def build_rate_quote(
    route: Route,
    quote: QuoteResult,
    quoted_at: datetime,
    provenance: Provenance = Provenance.LIVE,
) -> RateQuote:
    """Normalize an upstream quote into a RateQuote.

    The upstream fee is used when present; otherwise the fee is derived
    from the shortfall against a 1:1 rate.
    """
    effective_rate = normalize_rate(
        quote.amount_in,
        route.source.decimals,
        quote.amount_out,
        route.destination.decimals,
    )
    if quote.fee_usd is not None:
        fee_usd = quote.fee_usd
    else:
        fee_usd = derive_fee_usd(quote.amount_in, route.source.decimals, effective_rate)

    return RateQuote(
        source=route.source,
        destination=route.destination,
        amount_in=quote.amount_in,
        amount_out=quote.amount_out,
        effective_rate=effective_rate,
        total_fees_usd=fee_usd,
        quoted_at=quoted_at,
        provenance=provenance,
    )
