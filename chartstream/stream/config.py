"""
Stream Server Configuration

Network, data source and refresh settings for the chart stream server.
Values come from defaults, overridable through CHARTSTREAM_* environment
variables (launchers load a .env file first).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
import hashlib
import json
import os

from chartstream.render_engine.config import RenderConfig

ENV_PREFIX = "CHARTSTREAM_"


@dataclass
class StreamConfig:
    """
    Configuration for the chart stream server.

    - `refresh_interval_s` is the periodic full-refresh cadence for an active
      subscription.
    - `reload_interval_s` re-reads the data sources on a fixed cadence;
      0 disables reloading (data is loaded once at startup).
    """

    host: str = "0.0.0.0"
    port: int = 9001

    line_data_path: Path = Path("data") / "sample_data.json"
    ohlc_data_path: Path = Path("data") / "sample_ohlc.json"

    refresh_interval_s: float = 10.0
    reload_interval_s: float = 0.0

    log_level: str = "INFO"

    render: RenderConfig = field(default_factory=RenderConfig)

    def __post_init__(self):
        self.line_data_path = Path(self.line_data_path)
        self.ohlc_data_path = Path(self.ohlc_data_path)
        if self.refresh_interval_s <= 0:
            raise ValueError(f"refresh_interval_s must be positive, got {self.refresh_interval_s}")
        if self.reload_interval_s < 0:
            raise ValueError(f"reload_interval_s must be >= 0, got {self.reload_interval_s}")
        if not 0 < self.port < 65536:
            raise ValueError(f"port out of range: {self.port}")
        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StreamConfig":
        """Build config from CHARTSTREAM_* variables, falling back to defaults"""
        env = os.environ if environ is None else environ
        defaults = cls()

        def _get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value if value not in (None, "") else None

        return cls(
            host=_get("HOST") or defaults.host,
            port=int(_get("PORT") or defaults.port),
            line_data_path=Path(_get("LINE_DATA") or defaults.line_data_path),
            ohlc_data_path=Path(_get("OHLC_DATA") or defaults.ohlc_data_path),
            refresh_interval_s=float(_get("REFRESH_INTERVAL_S") or defaults.refresh_interval_s),
            reload_interval_s=float(_get("RELOAD_INTERVAL_S") or defaults.reload_interval_s),
            log_level=_get("LOG_LEVEL") or defaults.log_level,
        )

    def to_dict(self) -> dict:
        """Serialize configuration to dictionary"""
        return {
            "host": self.host,
            "port": self.port,
            "line_data_path": str(self.line_data_path),
            "ohlc_data_path": str(self.ohlc_data_path),
            "refresh_interval_s": self.refresh_interval_s,
            "reload_interval_s": self.reload_interval_s,
            "log_level": self.log_level,
            "render": self.render.to_dict(),
        }

    def get_config_hash(self) -> str:
        config_str = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]


DEFAULT_CONFIG = StreamConfig()
