import logging
import sys

import uvicorn
from fastapi import FastAPI
from rich.logging import RichHandler

from api.router import api_router
import core.globals
from config import AppConfig, load_config
from core.errors import UnsupportedPlatformError

logger = logging.getLogger(__name__)


def setup_logging(config: AppConfig, level: str = "INFO"):
    """Rich console output plus a plain log file next to the app data."""
    handlers: list = [RichHandler()]
    try:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        handlers.append(file_handler)
    except OSError as e:
        print(f"Log file disabled ({config.log_file}): {e}", file=sys.stderr)

    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers)


app = FastAPI(title="Media Transcriber API")

app.include_router(api_router)

@app.on_event("startup")
async def startup_event():
    from api.websocket import ws_manager
    if core.globals.job_manager is None:
        try:
            core.globals.init_globals(load_config())
        except UnsupportedPlatformError as e:
            # API stays up and answers 503 until an engine path is configured
            logger.error(f"{e.message}. Set TRANSCRIBER_RECOGNITION_ENGINE_PATH to a whisper.cpp binary.")
            return
    if ws_manager.broadcast not in core.globals.job_manager.event_callbacks:
        core.globals.job_manager.add_event_callback(ws_manager.broadcast)
    await core.globals.job_manager.start()

@app.on_event("shutdown")
async def shutdown_event():
    if core.globals.job_manager is not None:
        await core.globals.job_manager.stop()


def main():
    config = load_config()
    setup_logging(config)

    try:
        core.globals.init_globals(config)
    except UnsupportedPlatformError as e:
        logger.error(f"{e.message}. Set TRANSCRIBER_RECOGNITION_ENGINE_PATH to a whisper.cpp binary.")
        sys.exit(1)

    logger.info(f"Listening on 127.0.0.1:{config.port}")
    uvicorn.run(app, host="127.0.0.1", port=config.port, log_level="warning")


if __name__ == "__main__":
    main()
