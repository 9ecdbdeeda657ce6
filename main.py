import uvicorn
from fastapi import FastAPI, HTTPException

from text_image import __version__
from text_image.api import create_app
from text_image.settings import ENV_PREFIX, resolve_config

config = resolve_config()

try:
    app = create_app(config, require_enabled=True)
except RuntimeError:
    app = FastAPI(title="Text Image Converter (disabled)", version=__version__)

    @app.get("/")
    async def api_disabled() -> dict[str, str]:
        raise HTTPException(
            status_code=503,
            detail=(
                "Local API disabled. Set enable_local_api = true under [runtime] in config.toml "
                f"or export {ENV_PREFIX}ENABLE_LOCAL_API=true"
            ),
        )


if __name__ == "__main__":
    uvicorn.run(app, host=config.api.host, port=config.api.port)
