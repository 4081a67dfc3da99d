#!/usr/bin/env python3
"""Run script for pharmtasks."""

import logging

import uvicorn

from pharmtasks.config import DEBUG
from pharmtasks.database.database import init_db

if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG if DEBUG else logging.INFO)
    init_db()
    uvicorn.run(
        "pharmtasks.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
