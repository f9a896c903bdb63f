import uvicorn

from gateway.core.config import settings


def main():
    uvicorn.run(
        "gateway.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_config=None,
    )


if __name__ == "__main__":
    main()
