"""
api/routes/admin.py -- Aggregate counts for the admin page.

Any authenticated user may read these numbers; there are no roles.
This is a read-only aggregate route -- no mutations here.
"""

import time

from fastapi import APIRouter, Depends, Request

from api.models import StatsResponse
from auth.dependencies import require_identity
from auth.store import UserStore

# Auth policy:
# - GET /admin/stats: requires auth
# Router-level dependency enforces auth; the single handler does not repeat it.
router = APIRouter(dependencies=[Depends(require_identity)])


@router.get("/admin/stats", response_model=StatsResponse)
def get_stats(request: Request) -> StatsResponse:
    """Return row counts and process uptime.

    Response (camelCase on the wire):
      usersCount -- rows in users
      notesCount -- rows in notes
      uptime     -- seconds since the application started
    """
    store: UserStore = request.app.state.user_store
    return StatsResponse(
        users_count=store.count_users(),
        notes_count=store.count_notes(),
        uptime=round(time.monotonic() - request.app.state.started_at, 3),
    )
