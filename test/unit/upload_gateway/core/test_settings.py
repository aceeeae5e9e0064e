"""Tests for the settings and logger configuration surface."""

from upload_gateway.core.logger import LoggerConfig
from upload_gateway.core.settings import MiB, Settings


def test_settings_fields() -> None:
    """Verify only options the gateway reads are configurable."""
    assert set(Settings.model_fields) == {
        "DEBUG",
        "LOG_LEVEL",
        "API_HOST",
        "API_PORT",
        "GOOGLE_API_KEY",
        "UPLOAD_TIMEOUT",
        "CORS_ORIGINS",
        "CORS_METHODS",
        "CORS_HEADERS",
        "CORS_CREDENTIALS",
        "MEMORY_THRESHOLD",
        "DISK_FALLBACK_SIZE",
        "MAX_FILE_SIZE",
        "MAX_FILES",
        "MAX_PAYLOAD_SIZE",
        "UPLOADS_PATH",
        "PUBLIC_PATH",
        "STATIC_ROUTE",
    }
    assert not hasattr(Settings, "api_url")


def test_payload_cap_leaves_room_for_oversized_files() -> None:
    """Verify the server body cap exceeds the file limit so oversize files reach the receiver."""
    st = Settings()
    assert st.MAX_FILE_SIZE == 50 * MiB
    assert st.MAX_PAYLOAD_SIZE > st.MAX_FILE_SIZE


def test_logger_config_has_no_app_name() -> None:
    assert "app_name" not in LoggerConfig.__dataclass_fields__
