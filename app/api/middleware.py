"""API middleware: correlation ID, actor context, audit trigger."""

import json
import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.context import actor_id_ctx, correlation_id_ctx
from app.security.rbac import Role

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
ACTOR_ID_HEADER = "X-Actor-ID"
ACTOR_ROLE_HEADER = "X-Actor-Role"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Generate or preserve correlation ID; attach to request.state, response header, and logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        correlation_id_ctx.set(correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class ActorContextMiddleware(BaseHTTPMiddleware):
    """
    Read the already-authenticated actor from X-Actor-ID / X-Actor-Role (set by the
    upstream auth layer). Absent headers leave the actor unset; routes that need
    one reject the call. A malformed role is a 400.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        actor_id = (request.headers.get(ACTOR_ID_HEADER) or "").strip() or None
        raw_role = (request.headers.get(ACTOR_ROLE_HEADER) or "").strip().upper()
        role = None
        if raw_role:
            try:
                role = Role(raw_role)
            except ValueError:
                return JSONResponse(
                    status_code=400,
                    content={"detail": f"Unknown {ACTOR_ROLE_HEADER}: {raw_role}", "code": "VALIDATION_ERROR"},
                )
        request.state.actor_id = actor_id
        request.state.actor_role = role
        actor_id_ctx.set(actor_id)
        return await call_next(request)


class AuditTriggerMiddleware(BaseHTTPMiddleware):
    """After response: log structured access event (correlation_id, actor_id, path, method, status_code)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        audit_event = {
            "event": "request_audit",
            "correlation_id": getattr(request.state, "correlation_id", None),
            "actor_id": getattr(request.state, "actor_id", None),
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
        }
        logger.info(json.dumps(audit_event))
        return response
