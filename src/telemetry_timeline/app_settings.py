from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Sampling cadence
    second_bucket_ms: int = Field(default=1000, description="Bucket size in second view")
    minute_bucket_ms: int = Field(default=60000, description="Bucket size in minute view")
    resolution_scan_limit: int = Field(default=2000, description="Timestamp deltas scanned to infer resolution")
    point_time_scan_series: int = Field(default=5, description="Series per list scanned for seconds in point times")
    point_time_scan_points: int = Field(default=200, description="Points per series scanned for seconds in point times")

    # Gap breaking and windowing
    gap_factor: int = Field(default=2, description="Gap threshold as a multiple of the bucket size")
    window_pad_ms: int = Field(default=5 * 60 * 1000, description="Padding applied around the visible window")
    cursor_tolerance_ms: int = Field(default=30000, description="Nearest-neighbour tolerance for cursor read-outs")

    # API Constraints
    points_min: int = Field(default=10, description="Minimum points for decimation")
    points_max: int = Field(default=20000, description="Maximum points for decimation")
    default_points: int = Field(default=1500, description="Default maximum points per analog series")

    # Selection model
    min_window_ms: int = Field(default=60 * 60 * 1000, description="Minimum selection window length")
    initial_window_ms: int = Field(default=60 * 60 * 1000, description="Selection window length after a load")
    default_shift: str = Field(default="06:00:00to18:00:00", description="Shift used when none is provided")

    # Load / interaction scheduling
    chunk_size: int = Field(default=10, description="Channels normalized per event-loop turn")
    frame_interval_ms: int = Field(default=16, description="Minimum spacing of interactive updates")
    range_commit_debounce_ms: int = Field(default=500, description="Inactivity before a range change is committed")

    # Compression Settings
    gzip_enabled: bool = True
    gzip_min_size: int = 2048      # 2 KiB
    gzip_level: int = 6

    # Application Settings
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # CORS Settings
    allowed_origins: str = Field(default="*", description="Allowed CORS origins")

    def get_api_constraints(self) -> dict:
        """Return API constraints for frontend."""
        return {
            "points": {
                "min": self.points_min,
                "max": self.points_max,
                "default": self.default_points
            },
            "window": {
                "min_ms": self.min_window_ms,
                "initial_ms": self.initial_window_ms,
                "pad_ms": self.window_pad_ms,
            },
            "cursor_tolerance_ms": self.cursor_tolerance_ms,
        }

    def get_allowed_origins(self) -> list:
        """Split the configured CORS origins."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


# Global settings instance
app_settings = AppSettings()
