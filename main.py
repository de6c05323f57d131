import uvicorn

from planboard.api.app import create_app
from planboard.config import Settings
from planboard.logs import setup_logging

if __name__ == "__main__":
    # Settings.from_env() also reads a .env file in the working directory
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, reload=False)
