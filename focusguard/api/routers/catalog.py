"""
/categories, /browsers, /apps/installed — read-only lookups for pickers.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Request

from ...api.schemas import BrowserOut, CategoryOut
from ...enforcement.browsers import BROWSERS
from ...policy.categories import BlockCategory

router = APIRouter(tags=["catalog"])


@router.get("/categories", response_model=List[CategoryOut])
def list_categories():
    return [
        CategoryOut(
            key=c.value,
            name=c.display_name,
            apps=list(c.default_apps),
            websites=list(c.default_websites),
        )
        for c in BlockCategory
    ]


@router.get("/browsers", response_model=List[BrowserOut])
def list_browsers():
    return [
        BrowserOut(
            key=b.key,
            name=b.name,
            scriptable=b.scriptable,
            active_tab_only=b.active_tab_only,
        )
        for b in BROWSERS.values()
    ]


@router.get("/apps/installed")
def installed_apps(request: Request):
    apps = request.app.state.capability.list_installed_applications()
    return {"apps": apps, "count": len(apps)}
