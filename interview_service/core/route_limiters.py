"""
Description:
This module sets up a rate limiter for the application using SlowAPI.
It initializes a Limiter instance that identifies clients by their IP address and
applies RATE_LIMIT_DEFAULT (default "60/minute") to every route without its own limit.

Dependencies:
- slowapi: For rate limiting functionality.
- slowapi.util: For get_remote_address to retrieve the client's IP address.
- dotenv: For environment variable loading.
- loguru: For logging information about the rate limiter initialization.
"""
import os
from dotenv import load_dotenv
from slowapi import Limiter
from slowapi.util import get_remote_address
from loguru import logger

load_dotenv()

RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "60/minute")

limiter = Limiter(key_func=get_remote_address, default_limits=[RATE_LIMIT_DEFAULT])
logger.info(f"Rate limiter initialized ({RATE_LIMIT_DEFAULT})")
