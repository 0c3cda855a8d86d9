"""
FastAPI application for folio.

API Endpoints:
- GET/POST /api/goals, /api/sessions - Accountability collections
- GET /api/kv/health - Key-value store ping
- GET/POST /api/sync-github, POST /api/sync-github-single - GitHub project sync
- POST /api/admin/bulk-sync - Manual bulk sync
- GET/POST /api/cron/sync-github - Scheduled sync (bearer secret)
- GET /api/projects - Project records
- GET /api/beeminder/*, /api/focusmate/* - Integration proxies

Usage:
    # Run the server
    uvicorn folio.api.app:app --reload

    # Or from the CLI
    folio serve
"""

from folio.api.app import app

__all__ = ["app"]
