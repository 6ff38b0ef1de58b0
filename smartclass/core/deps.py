from fastapi import Request

from smartclass.core.config import Settings


# every request that needs DB will get a fresh session, and it will always close.
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request):
    return request.app.state.storage
