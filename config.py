"""
Quotation Converter Configuration

Runtime settings read from environment variables with sensible defaults.
"""

import os


class Settings:
    """Configuration settings for the quotation converter"""

    # Application settings
    app_name: str = "Matrix Quotation Converter"
    version: str = "1.0.0"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_dir: str = os.getenv(
        "LOG_DIR",
        os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")
    )

    # Server settings
    host: str = os.getenv("API_HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", 8000))

    # Conversion settings
    default_price: float = float(os.getenv("QUOTATION_DEFAULT_PRICE", "0.8"))
    sheet_name: str = os.getenv("QUOTATION_SHEET_NAME", "Quotation")


settings = Settings()
