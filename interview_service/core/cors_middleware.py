"""
Description:
Module for adding CORS middleware to the FastAPI application.

Allowed origins come from CORS_ORIGINS, a comma-separated list that defaults to
the local frontend (http://localhost:3000).

Dependencies:
- fastapi.middleware.cors: For CORS middleware functionality.
- dotenv: For environment variable loading.
- loguru: For logging information about the middleware setup.
"""

import os
from typing import List
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

load_dotenv()


def parse_origins(value: str) -> List[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


origins = parse_origins(os.getenv("CORS_ORIGINS", "http://localhost:3000"))

def add_cors_middleware(app: FastAPI):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info(f"CORS middleware added for {len(origins)} origin(s)")
