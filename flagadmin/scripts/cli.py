"""
A simple CLI for setting up the database and running the server.
"""

import asyncio
import sys

import uvicorn


def setup():
    from flagadmin.config.logging import configure_logging
    from flagadmin.config.settings import Settings

    settings = Settings()
    configure_logging(level=settings.log_level, log_json=settings.log_json)

    manager = settings.async_manager()

    async def create():
        await manager.create_all()
        await manager.dispose()

    asyncio.run(create())


def main():
    try:
        command = sys.argv[1]
    except IndexError:
        print("Supported commands are: flagadmin setup, flagadmin run [host] [port]")
        exit(1)

    if command == "setup":
        setup()
        print("Database tables created")
        exit(0)

    if command == "run":
        host = sys.argv[2] if len(sys.argv) > 2 else "0.0.0.0"
        port = int(sys.argv[3]) if len(sys.argv) > 3 else 8000
        uvicorn.run("flagadmin.api.app:app", host=host, port=port)
        return

    print(f"Unknown command {command}")
    exit(1)
