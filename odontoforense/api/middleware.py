"""
API middleware
"""
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from odontoforense.utils.logger import get_logger
from odontoforense.utils.helpers import mask_personal_info

logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request logging middleware"""

    async def dispatch(self, request: Request, call_next):
        """Log the request, time it and log the response"""
        start_time = time.time()

        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path

        logger.info(f"Request received: {method} {path} - IP: {client_ip}")

        # Request body at DEBUG with personal data masked; uploads are skipped
        content_type = request.headers.get("content-type", "")
        if method in ["POST", "PUT", "PATCH"] and not content_type.startswith("multipart/"):
            try:
                body = await request.body()
                masked_body = mask_personal_info(body.decode("utf-8"))
                logger.debug(f"Request body: {masked_body}")
            except Exception as e:
                logger.warning(f"Request body logging failed: {str(e)}")

        try:
            response = await call_next(request)

            process_time = time.time() - start_time
            logger.info(
                f"Response sent: {method} {path} - "
                f"status: {response.status_code} - "
                f"elapsed: {process_time:.3f}s"
            )

            response.headers["X-Process-Time"] = str(process_time)
            return response

        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request failed: {method} {path} - "
                f"error: {str(e)} - "
                f"elapsed: {process_time:.3f}s"
            )
            raise
