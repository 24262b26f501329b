"""
Server rendered pages and well-known files.

Titles, taglines, ``robots.txt`` and ``security.txt`` come from the
runtime settings so administrators can change them without a
restart.  Every interpolated value is HTML escaped.
"""

import html
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from citylist_api.app.api.deps import get_app_settings, get_city_store, get_settings_service
from citylist_api.app.api.responses import success, utc_timestamp
from citylist_api.app.core.config import Settings
from citylist_api.app.core.security import require_admin_basic
from citylist_api.app.services.city_store import CityStore
from citylist_api.app.services.settings_service import SettingsService


router = APIRouter(include_in_schema=False)
dev_router = APIRouter(include_in_schema=False)

DEFAULT_ROBOTS_TXT = "User-agent: *\nAllow: /\n"
DEFAULT_SECURITY_TXT = "Contact: mailto:security@example.com\nPreferred-Languages: en\n"

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{title}</title>
    <link rel="manifest" href="/manifest.json">
    <style>
        body {{ font-family: system-ui, sans-serif; background: #1a1a1a; color: #e6e6e6; max-width: 56rem; margin: 2rem auto; padding: 0 1rem; }}
        a {{ color: #7cc4ff; }}
        code, pre {{ background: #262626; padding: 0.1rem 0.3rem; border-radius: 3px; }}
        table {{ border-collapse: collapse; width: 100%; }}
        td, th {{ border-bottom: 1px solid #333; padding: 0.4rem; text-align: left; vertical-align: top; }}
    </style>
</head>
<body>
{body}
</body>
</html>"""


def render_page(title: str, body: str) -> HTMLResponse:
    return HTMLResponse(PAGE_TEMPLATE.format(title=html.escape(title), body=body))


@router.get("/")
def home(service: SettingsService = Depends(get_settings_service), store: CityStore = Depends(get_city_store)):
    title = service.get_value("server.title", "CityList API")
    tagline = service.get_value("server.tagline", "Global Cities Database")
    description = service.get_value("server.description", "")
    body = f"""
<h1>{html.escape(title)}</h1>
<p><strong>{html.escape(tagline)}</strong></p>
<p>{html.escape(description)}</p>
<p>{store.count():,} cities available.</p>
<ul>
    <li><a href="/docs">API documentation</a></li>
    <li><a href="/openapi">Interactive OpenAPI explorer</a></li>
    <li><a href="/api/v1/cities">Browse cities</a></li>
    <li><a href="/api/v1/citylist.json">Download dataset</a></li>
</ul>"""
    return render_page(title, body)


@router.get("/docs")
def docs(service: SettingsService = Depends(get_settings_service)):
    title = service.get_value("server.title", "CityList API")
    body = f"""
<h1>{html.escape(title)}: API documentation</h1>
<p>All responses are JSON objects of the form
<code>{{"success": true, "data": ..., "timestamp": ...}}</code>; errors carry
<code>{{"success": false, "error": {{"code": ..., "message": ...}}}}</code>.</p>
<table>
    <tr><th>Endpoint</th><th>Description</th></tr>
    <tr><td><code>GET /api/v1/cities?limit=&amp;offset=</code></td><td>Paginated list (limit default 100, max 1000)</td></tr>
    <tr><td><code>GET /api/v1/cities/search?q=&amp;limit=</code></td><td>Case-insensitive name search, at least 2 characters (limit default 50, max 100)</td></tr>
    <tr><td><code>GET /api/v1/cities/country/{{code}}?limit=</code></td><td>Cities of a 2-letter country code (limit default 100, max 1000)</td></tr>
    <tr><td><code>GET /api/v1/cities/coordinates?longitude=&amp;latitude=</code></td><td>Closest city and its distance in km</td></tr>
    <tr><td><code>POST /api/v1/cities/coordinates</code></td><td>Same with <code>{{"longitude": .., "latitude": ..}}</code> body</td></tr>
    <tr><td><code>GET /api/v1/cities/{{id}}</code></td><td>One city by id</td></tr>
    <tr><td><code>GET /api/v1/citylist.json</code></td><td>Raw dataset download</td></tr>
    <tr><td><code>GET /api/v1/health</code></td><td>Health check</td></tr>
    <tr><td><code>GET|PUT /api/v1/admin/settings</code></td><td>Runtime settings (Bearer token)</td></tr>
    <tr><td><code>GET /api/v1/admin/settings/{{key}}</code></td><td>One runtime setting (Bearer token)</td></tr>
    <tr><td><code>GET /api/v1/admin/stats</code></td><td>Server statistics (Bearer token)</td></tr>
    <tr><td><code>GET /api/v1/admin/audit</code></td><td>Audit log (Bearer token)</td></tr>
</table>
<p><a href="/openapi">OpenAPI explorer</a> &middot; <a href="/">Home</a></p>"""
    return render_page(f"Docs - {title}", body)


@router.get("/healthz")
def healthz(
    request: Request,
    store: CityStore = Depends(get_city_store),
    app_settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    """Detailed health report including a timed database query."""
    started = time.perf_counter()
    city_count = store.count()
    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    return {
        "status": "healthy",
        "timestamp": utc_timestamp(),
        "version": app_settings.api_version,
        "uptime_seconds": int(time.time() - request.app.state.started_at),
        "checks": {
            "database": {
                "status": "connected",
                "type": "sqlite",
                "city_count": city_count,
                "latency_ms": latency_ms,
            },
        },
        "features": {"api_enabled": True, "dev_mode": app_settings.dev_mode},
    }


@router.get("/manifest.json")
def manifest(service: SettingsService = Depends(get_settings_service)) -> Dict[str, Any]:
    return {
        "name": service.get_value("server.title", "CityList API"),
        "short_name": "CityList",
        "description": service.get_value("server.tagline", "Global Cities Database"),
        "start_url": "/",
        "display": "standalone",
        "orientation": "any",
        "theme_color": "#1a1a1a",
        "background_color": "#1a1a1a",
    }


@router.get("/robots.txt")
def robots_txt(service: SettingsService = Depends(get_settings_service)):
    return PlainTextResponse(service.get_value("robots.txt", DEFAULT_ROBOTS_TXT))


@router.get("/security.txt")
def security_txt_redirect():
    return RedirectResponse("/.well-known/security.txt", status_code=301)


@router.get("/.well-known/security.txt")
def security_txt(service: SettingsService = Depends(get_settings_service)):
    return PlainTextResponse(service.get_value("security.txt", DEFAULT_SECURITY_TXT))


@router.get("/admin")
async def admin_dashboard(
    admin: str = Depends(require_admin_basic),
    store: CityStore = Depends(get_city_store),
    service: SettingsService = Depends(get_settings_service),
):
    body = f"""
<h1>Admin Dashboard</h1>
<p>Signed in as <strong>{html.escape(admin)}</strong>.</p>
<p>{store.count():,} cities, {await service.count()} settings.</p>
<ul>
    <li><a href="/admin/settings">Settings</a></li>
    <li><a href="/">Back to Home</a></li>
</ul>
<p>The JSON admin API under <code>/api/v1/admin</code> expects the API token as
<code>Authorization: Bearer &lt;token&gt;</code>.</p>"""
    return render_page("Admin Dashboard - CityList", body)


@router.get("/admin/settings")
async def admin_settings_page(
    admin: str = Depends(require_admin_basic),
    service: SettingsService = Depends(get_settings_service),
):
    settings_list = await service.list_settings()
    rows = "\n".join(
        "    <tr><td>{category}</td><td><code>{key}</code></td><td><pre>{value}</pre></td><td>{type}</td><td>{description}</td></tr>".format(
            category=html.escape(item["category"]),
            key=html.escape(item["key"]),
            value=html.escape(str(item["value"])),
            type=html.escape(item["type"]),
            description=html.escape(item["description"] or ""),
        )
        for item in settings_list
    )
    body = f"""
<h1>Admin Settings</h1>
<p>Change values with <code>PUT /api/v1/admin/settings</code> and a
<code>{{"key": ..., "value": ...}}</code> body.</p>
<table>
    <tr><th>Category</th><th>Key</th><th>Value</th><th>Type</th><th>Description</th></tr>
{rows}
</table>
<p><a href="/admin">Back to Dashboard</a></p>"""
    return render_page("Admin Settings - CityList", body)


@dev_router.get("/debug/routes")
async def debug_routes(request: Request) -> Dict[str, Any]:
    """List registered routes.  Only mounted in dev mode."""
    routes = []
    for route in request.app.routes:
        methods = sorted(getattr(route, "methods", None) or [])
        routes.append(f"{','.join(methods) or 'MOUNT'} {route.path}")
    return success({"routes": routes})
