"""gemini-upload-gateway - adaptive-buffering upload relay powered by Robyn."""

import os

from robyn import Robyn
from robyn.argument_parser import Config

from upload_gateway.api.upload import UPLOAD_ENDPOINT, cors_policy
from upload_gateway.api.upload import router as upload_router
from upload_gateway.core.lifespan import create_lifespan
from upload_gateway.core.logger import LogIcon, logger
from upload_gateway.core.settings import settings as st
from upload_gateway.events.uploads import UploadsDirectoryEvent, UploadServiceEvent
from upload_gateway.middlewares.base import MiddlewareHandler
from upload_gateway.middlewares.cors import CorsMiddleware

# Only /upload and the static directory are served
config = Config()
config.disable_openapi = True

app = Robyn(__file__, config=config)

# Lifespan events
lifespan = create_lifespan(app)
lifespan.register(UploadsDirectoryEvent).register(UploadServiceEvent)

app.startup_handler(lifespan.startup)
app.shutdown_handler(lifespan.shutdown)

# Routers
app.include_router(upload_router)

# Middlewares
middlewares = MiddlewareHandler(app)
middlewares.register(CorsMiddleware(cors_policy, endpoints=[UPLOAD_ENDPOINT]))

# Static assets
if st.PUBLIC_PATH.is_dir():
    app.serve_directory(route=st.STATIC_ROUTE, directory_path=str(st.PUBLIC_PATH), index_file="index.html")
else:
    logger.warning("Public directory missing, static files disabled", icon=LogIcon.WARNING, path=str(st.PUBLIC_PATH))


def main() -> None:
    # Oversized files must reach the handler to be answered with the upload limit error
    os.environ.setdefault("ROBYN_MAX_PAYLOAD_SIZE", str(st.MAX_PAYLOAD_SIZE))
    logger.info("Starting server", icon=LogIcon.START, name=st.API_NAME, host=st.API_HOST, port=st.API_PORT)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
