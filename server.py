#!/usr/bin/env python3
"""
Web server for the video chat API.

Usage:
    python server.py              # start on port 8000
    python server.py --port 3000  # custom port
"""

import argparse
import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", 8000)))
    parser.add_argument("--host", default="0.0.0.0")
    args = parser.parse_args()

    # One worker only: sessions live in this process's memory.
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=False, workers=1)


if __name__ == "__main__":
    main()
