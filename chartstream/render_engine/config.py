"""
Render Engine Configuration

Fixed per-chart-kind styling and geometry constants.
"""

from dataclasses import dataclass, field
import json
import hashlib

from chartstream.render_engine.schemas import StyleSpec


@dataclass
class RenderConfig:
    """Generator parameters shared by every session"""

    # Target pane for all series
    pane: str = "main"

    # Candle body half-width in normalized x units
    candle_half_width: float = 0.01

    # Series ids
    line_series_id: str = "price"
    candlestick_series_id: str = "ohlc"

    # Styles (not derived from data)
    line_style: StyleSpec = field(
        default_factory=lambda: StyleSpec(color="#00ff00", thickness=1)
    )
    candlestick_style: StyleSpec = field(
        default_factory=lambda: StyleSpec(color="#00ff00", alt_color="#ff0000", thickness=1)
    )

    def __post_init__(self):
        if not 0.0 <= self.candle_half_width <= 1.0:
            raise ValueError(f"candle_half_width must be within [0, 1], got {self.candle_half_width}")

    def to_dict(self) -> dict:
        """Serialize configuration to dictionary"""
        return {
            "pane": self.pane,
            "candle_half_width": self.candle_half_width,
            "line_series_id": self.line_series_id,
            "candlestick_series_id": self.candlestick_series_id,
            "line_style": self.line_style.to_dict(),
            "candlestick_style": self.candlestick_style.to_dict(),
        }

    def get_config_hash(self) -> str:
        """Deterministic hash of the render parameters"""
        config_str = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]


DEFAULT_RENDER_CONFIG = RenderConfig()
