from aiohttp import web

from taswira.utils.api_retry import (
    combine_api_retry,
    image_api_retry,
    kie_api_retry,
    prompt_api_retry,
    vision_api_retry,
)

RETRY_HANDLERS = (vision_api_retry, prompt_api_retry, image_api_retry, kie_api_retry, combine_api_retry)


async def health_check(request: web.Request) -> web.Response:
    """Health check endpoint"""
    return web.Response(text="OK")


async def status(request: web.Request) -> web.Response:
    """Runtime counters for monitoring"""
    wizard = request.app["wizard"]
    return web.json_response({
        "sessions": len(wizard.store),
        "locks": wizard.lock.get_stats(),
        "db": request.app["db_middleware"].get_stats(),
        "providers": [handler.get_stats() for handler in RETRY_HANDLERS],
    })
