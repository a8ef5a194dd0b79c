import secrets

from fastapi import APIRouter, Depends, Request
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from userhub.errors import Unauthorized

router = APIRouter()

security = HTTPBasic()


def require_docs_credentials(
    request: Request, credentials: HTTPBasicCredentials = Depends(security)
) -> str:
    """Check basic auth against the configured docs credentials"""
    settings = request.app.state.context.settings
    expected_user = settings.SWAGGER_USERNAME
    expected_password = settings.SWAGGER_PASSWORD
    # Unconfigured credentials lock the docs instead of opening them
    if expected_user and expected_password:
        user_ok = secrets.compare_digest(credentials.username.encode(), expected_user.encode())
        password_ok = secrets.compare_digest(credentials.password.encode(), expected_password.encode())
        if user_ok and password_ok:
            return credentials.username
    raise Unauthorized("Invalid documentation credentials")


@router.get("", include_in_schema=False, dependencies=[Depends(require_docs_credentials)])
async def swagger_ui(request: Request):
    return get_swagger_ui_html(
        openapi_url=f"{request.scope.get('root_path', '')}/api-docs/openapi.json",
        title=f"{request.app.title} - API docs",
    )


@router.get("/openapi.json", include_in_schema=False, dependencies=[Depends(require_docs_credentials)])
async def openapi_schema(request: Request):
    return JSONResponse(request.app.openapi())
