"""HTTP basic authentication with the admin password."""

import secrets

from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from starlette import status

basic_scheme = HTTPBasic(auto_error=False)

ADMIN_USER = "admin"


async def require_admin(
    request: Request,
    credentials: HTTPBasicCredentials = Security(basic_scheme),
) -> None:
    """Reject requests without the admin password unless the server is public."""
    config = request.app.state.config

    if config.public():
        return

    if credentials is None or not (
        secrets.compare_digest(credentials.username.encode(), ADMIN_USER.encode())
        and secrets.compare_digest(credentials.password.encode(), config.admin_password().encode())
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
