import logging

from aiohttp import web

from taswira.database import crud

logger = logging.getLogger(__name__)


async def list_categories(request: web.Request) -> web.Response:
    categories = await crud.get_categories(request["db"])
    return web.json_response({"categories": [c.to_dict() for c in categories]})


async def list_styles(request: web.Request) -> web.Response:
    category_id = request.match_info["category_id"]
    if not await crud.get_category_by_id(request["db"], category_id):
        return web.json_response({"error": f"Category {category_id} not found"}, status=404)

    styles = await crud.get_styles(request["db"], category_id)
    return web.json_response({"styles": [s.to_dict() for s in styles]})
