import logging

import fastapi
from fastapi.responses import JSONResponse

from keysetpager import exc


logger = logging.getLogger(__name__)


async def pagination_error_handler(request: fastapi.Request, e: exc.BasePaginationError) -> JSONResponse:
    """ Report invalid pagination requests, malformed cursors and unknown field names as client errors: HTTP 400 """
    logger.info(f'Bad pagination request {request.url.path}: {e}')
    return JSONResponse(
        status_code=fastapi.status.HTTP_400_BAD_REQUEST,
        content={'detail': str(e)},
    )


def install_error_handlers(app: fastapi.FastAPI):
    """ Register exception handlers for pagination errors

    Example:
        app = FastAPI()
        install_error_handlers(app)
    """
    app.add_exception_handler(exc.InvalidRequestError, pagination_error_handler)  # type: ignore[arg-type]
    # Field names come from the URL as well
    app.add_exception_handler(exc.InvalidColumnError, pagination_error_handler)  # type: ignore[arg-type]
