"""
Page shells for the frontend routes guarded by the session gate
The frontend renders the page; these return what it needs to hydrate.
"""

from fastapi import APIRouter, Request

router = APIRouter()

PAGES = {
    "/": "home",
    "/login": "login",
    "/register": "register",
    "/donate": "donate",
    "/request": "request",
    "/profile": "profile",
    "/admin": "admin",
}


def _page(request: Request, name: str) -> dict:
    session = getattr(request.state, "session", None)
    return {
        "page": name,
        "user": {"id": session.user_id, "role": session.role} if session else None,
    }


def _register(path: str, name: str) -> None:
    async def page(request: Request):
        return _page(request, name)

    page.__name__ = f"{name}_page"
    router.add_api_route(path, page, methods=["GET"], include_in_schema=False)


for _path, _name in PAGES.items():
    _register(_path, _name)
