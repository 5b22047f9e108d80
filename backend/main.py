import uvicorn

from qa_service.core.config import settings
from qa_service.main import app  # noqa: F401

if __name__ == "__main__":
    uvicorn.run(
        "qa_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )
