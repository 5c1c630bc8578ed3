import logging

from aiohttp import web

from taswira.services.wizard import SessionNotFound, WizardError, WizardStepError
from taswira.utils.api_retry import CircuitBreakerOpen
from taswira.utils.locks import SessionBusy

logger = logging.getLogger(__name__)


def error_response(message: str, status: int) -> web.Response:
    return web.json_response({"error": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Turn wizard and unexpected errors into JSON responses"""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except SessionNotFound as e:
        return error_response(str(e), 404)
    except (WizardStepError, SessionBusy) as e:
        return error_response(str(e), 409)
    except WizardError as e:
        return error_response(str(e), 400)
    except CircuitBreakerOpen as e:
        logger.warning(f"{request.method} {request.path}: {e}")
        return error_response(str(e), 503)
    except Exception as e:
        logger.error(f"Error in {request.method} {request.path}: {e}", exc_info=True)
        return error_response("Internal server error", 500)
