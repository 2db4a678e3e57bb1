"""Order book data models."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class OrderBookLevel(BaseModel):
    """One price level of an order book side."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    price: float = Field(gt=0)
    quantity: float = Field(ge=0)


class CumulativeLevel(OrderBookLevel):
    """Order book level with the running quantity up to and including it."""

    cumulative: float = Field(ge=0)


class OrderBook(BaseModel):
    """Order book snapshot.

    Bids are sorted by descending price, asks by ascending price, and
    each price appears at most once per side.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    bids: tuple[OrderBookLevel, ...] = ()
    asks: tuple[OrderBookLevel, ...] = ()
    last_update_id: int = 0

    @model_validator(mode="after")
    def _check_sorting(self) -> "OrderBook":
        for prev, current in zip(self.bids, self.bids[1:]):
            if current.price >= prev.price:
                raise ValueError(f"Bids must be strictly descending: {prev.price} then {current.price}")
        for prev, current in zip(self.asks, self.asks[1:]):
            if current.price <= prev.price:
                raise ValueError(f"Asks must be strictly ascending: {prev.price} then {current.price}")
        return self


class DepthMetrics(BaseModel):
    """Spread and depth figures over the displayed order book window."""

    model_config = ConfigDict(frozen=True)

    best_bid: float
    best_ask: float
    mid_price: float
    spread_absolute: float
    spread_percent: float
    bid_depth_total: float
    ask_depth_total: float
    depth_imbalance: float
    depth_imbalance_percent: float  # in [-100, 100], 0 for an empty window


class LiquidityWall(BaseModel):
    """Order book level annotated with wall detection."""

    model_config = ConfigDict(frozen=True)

    price: float
    quantity: float
    is_bid: bool
    is_wall: bool


class DepthAnalysis(BaseModel):
    """Everything the depth chart needs for one order book snapshot."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    display_limit: int
    metrics: DepthMetrics | None = None
    cumulative_bids: tuple[CumulativeLevel, ...] = ()
    cumulative_asks: tuple[CumulativeLevel, ...] = ()
    walls: tuple[LiquidityWall, ...] = ()
    normalization_max: float = 0.0
