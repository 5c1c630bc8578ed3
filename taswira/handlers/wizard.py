"""JSON endpoints driving the product wizard"""
import json
import logging
from typing import Dict

from aiohttp import web

from taswira.services.wizard import WizardError, WizardService
from taswira.states import WizardStep

logger = logging.getLogger(__name__)


def _wizard(request: web.Request) -> WizardService:
    return request.app["wizard"]


def _session_response(session, status: int = 200) -> web.Response:
    return web.json_response(session.to_dict(), status=status)


async def _json_body(request: web.Request) -> Dict:
    if not request.can_read_body:
        return {}
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise WizardError("Request body must be JSON")
    if not isinstance(body, dict):
        raise WizardError("Request body must be a JSON object")
    return body


async def create_session(request: web.Request) -> web.Response:
    """Multipart upload: image file + productName"""
    if not request.content_type.startswith("multipart/"):
        raise WizardError("Expected multipart/form-data with image and productName")

    form = await request.post()
    image = form.get("image")
    if not isinstance(image, web.FileField):
        raise WizardError("Image is required")

    image_bytes = image.file.read()
    session = _wizard(request).create_session(image_bytes, str(form.get("productName") or ""))
    return _session_response(session, status=201)


async def get_session(request: web.Request) -> web.Response:
    session = _wizard(request).get_session(request.match_info["session_id"])
    return _session_response(session)


async def analyze(request: web.Request) -> web.Response:
    session = await _wizard(request).analyze(request["db"], request.match_info["session_id"])
    return _session_response(session)


async def select_category(request: web.Request) -> web.Response:
    body = await _json_body(request)
    session = await _wizard(request).select_category(
        request["db"], request.match_info["session_id"], body.get("categoryId")
    )
    return _session_response(session)


async def select_mode(request: web.Request) -> web.Response:
    body = await _json_body(request)
    session = _wizard(request).select_mode(request.match_info["session_id"], body.get("mode"))
    return _session_response(session)


async def generate(request: web.Request) -> web.Response:
    body = await _json_body(request)
    session = await _wizard(request).generate_image(
        request["db"],
        request.match_info["session_id"],
        style_id=body.get("styleId"),
        custom_prompt=body.get("customPrompt")
    )
    return _session_response(session)


async def confirm(request: web.Request) -> web.Response:
    session = await _wizard(request).confirm(request["db"], request.match_info["session_id"])
    return _session_response(session, status=202 if session.step == WizardStep.video_generating else 200)


async def campaign(request: web.Request) -> web.Response:
    session = await _wizard(request).create_campaign(request["db"], request.match_info["session_id"])
    return _session_response(session, status=202)


async def back(request: web.Request) -> web.Response:
    session = _wizard(request).back(request.match_info["session_id"])
    return _session_response(session)
