#!/usr/bin/env python
"""
Server runner for dudelang.
Starts uvicorn on the configured PORT.
"""
import uvicorn

from dudelang.core.config import settings


def main() -> None:
    print(f"\n[INFO] Starting dudelang server on port {settings.PORT}...")
    uvicorn.run("dudelang.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    main()
