"""Request identity supplied by the authentication middleware."""

from http import HTTPStatus

from fastapi import HTTPException, Request


def get_current_user_id(request: Request) -> str:
    """Return the verified user id placed on ``request.state`` upstream.

    Endpoints never accept a user id from the body or query string.
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED,
            detail="Authentication required.",
        )
    return str(user_id)


__all__ = ["get_current_user_id"]
