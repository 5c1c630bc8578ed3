from aiohttp import web

from . import catalog, common, wizard


def setup_routes(app: web.Application, media_dir=None):
    app.router.add_get('/health', common.health_check)
    app.router.add_get('/api/status', common.status)

    app.router.add_get('/api/categories', catalog.list_categories)
    app.router.add_get('/api/categories/{category_id}/styles', catalog.list_styles)

    app.router.add_post('/api/wizard', wizard.create_session)
    app.router.add_get('/api/wizard/{session_id}', wizard.get_session)
    app.router.add_post('/api/wizard/{session_id}/analyze', wizard.analyze)
    app.router.add_post('/api/wizard/{session_id}/category', wizard.select_category)
    app.router.add_post('/api/wizard/{session_id}/mode', wizard.select_mode)
    app.router.add_post('/api/wizard/{session_id}/generate', wizard.generate)
    app.router.add_post('/api/wizard/{session_id}/confirm', wizard.confirm)
    app.router.add_post('/api/wizard/{session_id}/campaign', wizard.campaign)
    app.router.add_post('/api/wizard/{session_id}/back', wizard.back)

    if media_dir is not None:
        app.router.add_static('/media', media_dir)
