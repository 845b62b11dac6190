#!/usr/bin/env python3
"""
Create the submissions table in Snowflake.

Safe to run repeatedly (CREATE TABLE IF NOT EXISTS).

Usage:
    python scripts/create_schema.py

Requires:
    - .env file with Snowflake credentials
"""

import logging
import os
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.infrastructure.snowflake.client import (  # noqa: E402
    SnowflakeConnectionError,
    get_snowflake_connection,
)
from src.infrastructure.snowflake.repositories.submissions import (  # noqa: E402
    SUBMISSIONS_DDL,
    SnowflakeConfig,
)

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger("create_schema")


def config_from_env() -> SnowflakeConfig:
    """Build connection config from SNOWFLAKE_* variables."""
    return SnowflakeConfig(
        account=os.getenv("SNOWFLAKE_ACCOUNT", ""),
        user=os.getenv("SNOWFLAKE_USER", ""),
        password=os.getenv("SNOWFLAKE_PASSWORD") or None,
        private_key_path=os.getenv("SNOWFLAKE_PRIVATE_KEY_PATH") or None,
        private_key_base64=os.getenv("SNOWFLAKE_PRIVATE_KEY_BASE64") or None,
        database=os.getenv("SNOWFLAKE_DATABASE", "VIDEO_INTAKE"),
        schema=os.getenv("SNOWFLAKE_SCHEMA", "PUBLIC"),
        warehouse=os.getenv("SNOWFLAKE_WAREHOUSE", "COMPUTE_WH"),
        role=os.getenv("SNOWFLAKE_ROLE") or None,
    )


def main() -> int:
    config = config_from_env()

    if not config.account or not config.user:
        logger.error("SNOWFLAKE_ACCOUNT and SNOWFLAKE_USER must be set")
        return 1

    try:
        with get_snowflake_connection(config) as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(SUBMISSIONS_DDL)
                conn.commit()
            finally:
                cursor.close()
    except SnowflakeConnectionError as e:
        logger.error(f"Could not connect to Snowflake: {e}")
        return 1

    logger.info(
        f"Submissions table ready in {config.database}.{config.schema}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
