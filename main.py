"""
Entry point for running the product catalog API with uvicorn.
"""
import uvicorn

from catalog.config import get_settings
from catalog.main import create_app

settings = get_settings()
app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.reload)
