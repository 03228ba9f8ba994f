"""FastAPI dependency helpers for authorization."""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Literal, Union

from fastapi import Depends, HTTPException, Request, status

from warden.auth.middleware import get_request_principal
from warden.errors import AuthorizationError, ConfigurationError

logger = logging.getLogger(__name__)

SubjectData = Union[Mapping[str, Any], Callable[[Request], Mapping[str, Any]], None]


def require_authorization(
    warden: Any,
    action: str,
    subject_type: str,
    subject_data: SubjectData = None,
    field: str | None = None,
):
    """FastAPI dependency to require an authorization.

    Args:
        warden: Warden instance
        action: Action to check
        subject_type: Subject type to check
        subject_data: Subject attributes, or a function building them from the request
        field: Optional field of the subject

    Usage:
        @app.put("/articles/{author_id}")
        async def update_article(
            _: bool = Depends(require_authorization(
                warden, "update", "Article",
                lambda request: {"authorId": request.path_params["author_id"]},
            ))
        ):
            pass
    """

    def check(request: Request, principal: Any = Depends(get_request_principal)) -> Literal[True]:
        data = subject_data(request) if callable(subject_data) else subject_data
        try:
            return warden.ensure_authorization(principal, action, subject_type, data, field)
        except AuthorizationError as e:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "forbidden",
                    "message": e.message,
                    "code": e.code,
                },
            )
        except ConfigurationError as e:
            logger.error(
                "Authorization misconfigured for %s %s: %s",
                request.method, request.url.path, e.message,
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={
                    "error": "internal_error",
                    "message": "Authorization system error",
                    "code": e.code,
                },
            )

    return check
