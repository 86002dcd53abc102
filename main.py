import uvicorn

from taskboard.config import settings


def run() -> None:
    uvicorn.run("taskboard.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
