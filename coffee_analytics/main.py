"""
FastAPI Production Application

Main entry point for the Coffee Shop Analytics API.
"""

from coffee_analytics.config import get_settings
from coffee_analytics.serving.api import create_api_app

settings = get_settings()
app = create_api_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
