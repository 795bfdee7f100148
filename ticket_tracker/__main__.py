"""Run the ticket-tracker API with uvicorn."""

import uvicorn

from ticket_tracker.app import create_app
from ticket_tracker.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
