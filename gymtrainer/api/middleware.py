"""API middleware for rate limiting, CORS and request metrics"""
import logging
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware

from gymtrainer.config import CORS_ORIGINS, RATE_LIMIT_DEFAULT
from gymtrainer.monitoring import track_request

logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address, default_limits=[RATE_LIMIT_DEFAULT])


def setup_cors(app):
    """Configure CORS middleware"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    logger.info(f"CORS configured for origins: {CORS_ORIGINS}")


def setup_rate_limiting(app):
    """Configure rate limiting"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    logger.info(f"Rate limiting configured: {RATE_LIMIT_DEFAULT} per IP")


def setup_request_metrics(app):
    """Count and time every HTTP request"""

    @app.middleware("http")
    async def request_metrics(request: Request, call_next):
        with track_request(request.method, request.url.path):
            return await call_next(request)
