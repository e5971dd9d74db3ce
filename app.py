import uvicorn

from contact_api.config import config_instance
from contact_api.main.main import create_app

app = create_app()


if __name__ == '__main__':
    # Start the FastAPI app
    settings = config_instance()
    uvicorn.run("app:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, workers=1)
