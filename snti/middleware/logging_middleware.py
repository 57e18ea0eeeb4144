import logging
import re
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from snti.config import settings
from snti.core.logging_utils import mask_headers, sanitize_log_message

logger = logging.getLogger(__name__)

# Accept caller-supplied request IDs only in a conservative format
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9\-]{8,64}$")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Assigns X-Request-ID and logs every request/response pair with masked headers."""

    SKIP_PATHS = ("/health", "/api/docs", "/api/redoc", "/api/openapi.json")

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get("X-Request-ID", "")
        request_id = incoming if REQUEST_ID_PATTERN.match(incoming) else str(uuid.uuid4())
        request.state.request_id = request_id

        path = request.url.path
        if path == "/" or path.startswith(self.SKIP_PATHS) or not settings.LOG_ENABLE_REQUEST_LOGGING:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        method = request.method
        client_ip = request.client.host if request.client else None
        start_time = time.time()

        logger.debug(
            sanitize_log_message(
                f"Request: {method} {path}",
                RequestID=request_id,
                IP=client_ip,
                UserAgent=request.headers.get("user-agent"),
                QueryParams=dict(request.query_params),
                Headers=mask_headers(dict(request.headers))
            )
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                sanitize_log_message(
                    f"Exception in request: {method} {path}",
                    RequestID=request_id,
                    ProcessTime=f"{time.time() - start_time:.3f}s",
                    IP=client_ip,
                    Error=str(e)
                )
            )
            raise

        response.headers["X-Request-ID"] = request_id

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(
            level,
            sanitize_log_message(
                f"Response: {method} {path}",
                RequestID=request_id,
                Status=response.status_code,
                ProcessTime=f"{time.time() - start_time:.3f}s",
                IP=client_ip
            )
        )
        return response
