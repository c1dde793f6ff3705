# run.py
import uvicorn
from app.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG and not settings.is_production,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True
    )
