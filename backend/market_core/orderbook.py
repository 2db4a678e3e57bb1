"""Order book depth analysis.

Pure functions over price levels: spread and depth imbalance for the
displayed window, cumulative depth for charting, and liquidity wall
detection.
"""

from typing import Sequence

from market_core.models import (
    CumulativeLevel,
    DepthAnalysis,
    DepthConfig,
    DepthMetrics,
    LiquidityWall,
    OrderBook,
    OrderBookLevel,
)


def depth_metrics(
    bids: Sequence[OrderBookLevel],
    asks: Sequence[OrderBookLevel],
    display_limit: int,
) -> DepthMetrics | None:
    """
    Calculate spread and depth imbalance over the top levels of each side.

    Only the first ``display_limit`` levels per side participate, so thin
    liquidity deep in the book does not skew the figures.

    Args:
        bids: Bid levels, best (highest) first
        asks: Ask levels, best (lowest) first
        display_limit: Levels per side to include

    Returns:
        DepthMetrics, or None if either side is empty
    """
    if display_limit < 1:
        raise ValueError(f"display_limit must be positive, got {display_limit}")
    if not bids or not asks:
        return None

    display_bids = bids[:display_limit]
    display_asks = asks[:display_limit]

    best_bid = display_bids[0].price
    best_ask = display_asks[0].price
    mid_price = (best_bid + best_ask) / 2
    spread_absolute = best_ask - best_bid
    spread_percent = spread_absolute / mid_price * 100

    bid_depth_total = sum(level.quantity for level in display_bids)
    ask_depth_total = sum(level.quantity for level in display_asks)

    total_depth = bid_depth_total + ask_depth_total
    depth_imbalance = bid_depth_total - ask_depth_total
    depth_imbalance_percent = depth_imbalance / total_depth * 100 if total_depth > 0 else 0.0

    return DepthMetrics(
        best_bid=best_bid,
        best_ask=best_ask,
        mid_price=mid_price,
        spread_absolute=spread_absolute,
        spread_percent=spread_percent,
        bid_depth_total=bid_depth_total,
        ask_depth_total=ask_depth_total,
        depth_imbalance=depth_imbalance,
        depth_imbalance_percent=depth_imbalance_percent,
    )


def cumulative_depth(levels: Sequence[OrderBookLevel]) -> list[CumulativeLevel]:
    """Running quantity per level, keeping the input order."""
    result = []
    cumulative = 0.0
    for level in levels:
        cumulative += level.quantity
        result.append(
            CumulativeLevel(price=level.price, quantity=level.quantity, cumulative=cumulative)
        )
    return result


def classify_levels(
    bids: Sequence[OrderBookLevel],
    asks: Sequence[OrderBookLevel],
    threshold_percent: float,
) -> list[LiquidityWall]:
    """
    Annotate every level with wall detection.

    The reference is the largest quantity across both sides; a level is a
    wall when its quantity reaches ``threshold_percent`` of it. A book with
    no levels has no walls; when every level is empty, every level is a wall.

    Args:
        bids: Bid levels
        asks: Ask levels
        threshold_percent: Wall threshold as a percentage of the max quantity

    Returns:
        Bid annotations followed by ask annotations
    """
    all_levels = [*bids, *asks]
    if not all_levels:
        return []

    max_quantity = max(level.quantity for level in all_levels)
    threshold = max_quantity * (threshold_percent / 100)

    annotated = [
        LiquidityWall(price=b.price, quantity=b.quantity, is_bid=True, is_wall=b.quantity >= threshold)
        for b in bids
    ]
    annotated.extend(
        LiquidityWall(price=a.price, quantity=a.quantity, is_bid=False, is_wall=a.quantity >= threshold)
        for a in asks
    )
    return annotated


def detect_walls(
    bids: Sequence[OrderBookLevel],
    asks: Sequence[OrderBookLevel],
    threshold_percent: float,
) -> list[LiquidityWall]:
    """Liquidity walls only (see ``classify_levels``)."""
    return [w for w in classify_levels(bids, asks, threshold_percent) if w.is_wall]


def normalization_max(
    cumulative_bids: Sequence[CumulativeLevel],
    cumulative_asks: Sequence[CumulativeLevel],
) -> float:
    """Largest final cumulative quantity of either side, 0 if both are empty."""
    max_bid = cumulative_bids[-1].cumulative if cumulative_bids else 0.0
    max_ask = cumulative_asks[-1].cumulative if cumulative_asks else 0.0
    return max(max_bid, max_ask)


class OrderBookAnalyzer:
    """Build the depth chart view for an order book snapshot."""

    def __init__(self, config: DepthConfig | None = None):
        self.config = config or DepthConfig()

    def analyze(self, book: OrderBook) -> DepthAnalysis:
        """
        Analyze the displayed window of an order book.

        Both sides are cut to the same number of levels:
        min(display_limit, len(bids), len(asks)). A book with an empty
        side therefore yields no metrics and no levels.
        """
        limit = min(self.config.display_limit, len(book.bids), len(book.asks))
        if limit == 0:
            return DepthAnalysis(symbol=book.symbol, display_limit=0)

        display_bids = book.bids[:limit]
        display_asks = book.asks[:limit]
        cumulative_bids = cumulative_depth(display_bids)
        cumulative_asks = cumulative_depth(display_asks)

        return DepthAnalysis(
            symbol=book.symbol,
            display_limit=limit,
            metrics=depth_metrics(display_bids, display_asks, limit),
            cumulative_bids=tuple(cumulative_bids),
            cumulative_asks=tuple(cumulative_asks),
            walls=tuple(detect_walls(display_bids, display_asks, self.config.wall_threshold_percent)),
            normalization_max=normalization_max(cumulative_bids, cumulative_asks),
        )
