"""QA harness endpoints with configurable failure injection.

Everything under ``/api/testing`` is synthetic: no database access, and
the behaviour is driven by the application's ``SimulationService``.
"""

import asyncio
import math
import time
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError
from pydantic import BaseModel

from todo_api.api.deps import bearer_scheme, get_simulation
from todo_api.api.schemas import BurstRequest, ShortTokenRequest, SimulationConfigRequest
from todo_api.core import harness
from todo_api.core.security import create_access_token, decode_token
from todo_api.core.simulation import CONFIG_DESCRIPTION, RATE_LIMIT_NOTE, SimulationService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/testing", tags=["Testing"])

TEST_USER_ID = 999
TEST_USERNAME = "testuser"
TEST_PASSWORD = "testpass"
FLAKY_TOKEN_TTL = timedelta(minutes=5)
MAX_SLOW_DELAY_MS = 30_000
SLOW_BEHAVIOR_SECONDS = 5
# Long enough for any reasonable client timeout to fire first.
HANG_SECONDS = 120
IGNORED_CONFIG_KEYS = ("rateLimitWindow", "rateLimitMax")


class FlakyLoginRequest(BaseModel):
    username: str | None = None
    password: str | None = None


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


async def simulate_network_issues(
    simulation: SimulationService = Depends(get_simulation),
) -> None:
    """Apply the configured delay, then fail randomly with a 503."""
    config = simulation.config
    if config.network_delay_ms > 0:
        await asyncio.sleep(config.network_delay_ms / 1000)

    if simulation.should_fail_network():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "Service temporarily unavailable",
                "type": "network_simulation",
                "retry_after": simulation.retry_after(),
            },
        )


network = [Depends(simulate_network_issues)]


# --- Configuration ---


@router.get("/config")
async def get_config(simulation: SimulationService = Depends(get_simulation)) -> dict:
    return {
        "config": simulation.config.to_dict(),
        "description": CONFIG_DESCRIPTION,
        "note": RATE_LIMIT_NOTE,
    }


@router.post("/config")
async def update_config(
    body: SimulationConfigRequest,
    simulation: SimulationService = Depends(get_simulation),
) -> dict:
    extra = body.model_extra or {}
    if any(key in extra for key in IGNORED_CONFIG_KEYS):
        logger.info("rate_limit_parameters_ignored")

    config = simulation.update(
        auth_failure_rate=body.authFailureRate,
        network_delay_ms=body.networkDelayMs,
        network_failure_rate=body.networkFailureRate,
        validation_strictness=body.validationStrictness,
    )
    return {
        "message": "Test configuration updated successfully",
        "config": config.to_dict(),
        "note": RATE_LIMIT_NOTE,
    }


# --- Authentication ---


@router.post("/auth/flaky-login", dependencies=network)
async def flaky_login(
    body: FlakyLoginRequest,
    simulation: SimulationService = Depends(get_simulation),
) -> dict:
    if not body.username or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username and password are required",
        )

    if simulation.should_fail_auth():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Authentication failed",
                "type": "auth_simulation",
                "reason": "Simulated authentication failure",
            },
        )

    if body.username != TEST_USERNAME or body.password != TEST_PASSWORD:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(
        TEST_USER_ID, expires_delta=FLAKY_TOKEN_TTL, username=TEST_USERNAME, type="test"
    )
    return {
        "message": "Login successful",
        "token": token,
        "expiresIn": "5 minutes",
        "type": "test_token",
    }


@router.post("/auth/short-token")
async def short_token(body: ShortTokenRequest | None = None) -> dict:
    body = body or ShortTokenRequest()
    expiry = _clamp(body.expiresInSeconds, 1, 300)
    token = create_access_token(
        TEST_USER_ID,
        expires_delta=timedelta(seconds=expiry),
        username=TEST_USERNAME,
        type="short_lived",
    )
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=expiry)
    return {
        "message": "Short-lived token created",
        "token": token,
        "expiresInSeconds": expiry,
        "expiresAt": expires_at.isoformat().replace("+00:00", "Z"),
    }


@router.get("/auth/protected-resource", dependencies=network)
async def protected_resource(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    simulation: SimulationService = Depends(get_simulation),
) -> dict:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required")

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired token")

    if simulation.should_fail_auth():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Token randomly rejected",
                "type": "auth_simulation",
                "reason": "Simulated token rejection",
            },
        )

    return {
        "message": "Access granted to protected resource",
        "user": payload,
        "timestamp": _timestamp(),
        "resource": "sensitive_data_here",
    }


# --- Validation ---


@router.post("/validation/user-profile", dependencies=network)
async def validate_user_profile(
    payload: dict[str, Any] = Body(...),
    simulation: SimulationService = Depends(get_simulation),
):
    strictness = simulation.config.validation_strictness
    profile = {field: payload.get(field) for field in ("name", "email", "age", "phone", "bio")}

    errors = harness.validate_profile(strictness, payload)
    if errors:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Validation failed",
                "errors": errors,
                "strictness": strictness.value,
                "receivedData": profile,
            },
        )

    return {
        "message": "Profile validation passed",
        "profile": profile,
        "strictness": strictness.value,
        "timestamp": _timestamp(),
    }


@router.post("/validation/data-types", dependencies=network)
async def validate_data_types(payload: dict[str, Any] = Body(...)):
    fields = [field for field, _, _ in harness.TYPE_CHECKS]
    errors = harness.validate_data_types(payload)
    if errors:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Data type validation failed",
                "errors": errors,
                "receivedTypes": {field: harness.json_type_name(payload, field) for field in fields},
            },
        )

    return {
        "message": "All data types are valid",
        "processedData": {field: payload.get(field) for field in fields},
        "timestamp": _timestamp(),
    }


# --- Rate limiting ---


@router.get("/rate-limit/basic", dependencies=network)
async def rate_limit_basic(request: Request) -> dict:
    return {
        "message": "Request successful (rate limiting disabled)",
        "timestamp": _timestamp(),
        "note": RATE_LIMIT_NOTE,
        "clientId": request.client.host if request.client else None,
    }


@router.post("/rate-limit/burst")
async def rate_limit_burst(body: BurstRequest | None = None) -> dict:
    body = body or BurstRequest()
    total = _clamp(body.requestCount, 1, 20)
    results = []
    for number in range(1, total + 1):
        results.append(
            {
                "requestNumber": number,
                "status": 200,
                "timestamp": _timestamp(),
                "note": "Rate limiting disabled - all requests succeed",
            }
        )
        await asyncio.sleep(0.01)

    return {
        "message": "Burst test completed (rate limiting disabled)",
        "totalRequests": total,
        "results": results,
        "note": f"{RATE_LIMIT_NOTE} - all requests will succeed",
    }


# --- Network ---


@router.get("/network/slow-response")
async def slow_response(
    delay: int = 0,
    simulation: SimulationService = Depends(get_simulation),
) -> dict:
    configured = simulation.config.network_delay_ms
    additional = _clamp(delay, 0, MAX_SLOW_DELAY_MS)
    total = configured + additional

    started = time.monotonic()
    if total > 0:
        await asyncio.sleep(total / 1000)

    return {
        "message": "Slow response completed",
        "configuredDelay": configured,
        "additionalDelay": additional,
        "totalDelay": total,
        "actualResponseTime": round((time.monotonic() - started) * 1000),
        "timestamp": _timestamp(),
    }


@router.get("/network/random-failure", dependencies=network)
async def random_failure(simulation: SimulationService = Depends(get_simulation)) -> dict:
    return {
        "message": "Network request successful",
        "failureRate": simulation.config.network_failure_rate,
        "timestamp": _timestamp(),
        "lucky": "You made it through!",
    }


@router.get("/network/timeout-test")
async def timeout_test(behavior: str = "normal"):
    if behavior == "slow":
        await asyncio.sleep(SLOW_BEHAVIOR_SECONDS)
        return {"message": "Slow response completed", "behavior": behavior}
    if behavior == "timeout":
        return JSONResponse(
            status_code=status.HTTP_408_REQUEST_TIMEOUT,
            content={"error": "Request timeout", "behavior": behavior},
        )
    if behavior == "hang":
        await asyncio.sleep(HANG_SECONDS)
        return JSONResponse(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            content={"error": "Gateway timeout", "behavior": behavior},
        )
    return {"message": "Normal response", "behavior": behavior, "timestamp": _timestamp()}


# --- Pagination ---


def _dataset_link(page: int, limit: int, total_records: int) -> str:
    return (
        f"{router.prefix}/pagination/large-dataset"
        f"?page={page}&limit={limit}&total_records={total_records}"
    )


@router.get("/pagination/large-dataset", dependencies=network)
async def large_dataset(page: int = 1, limit: int = 10, total_records: int = 10_000):
    page = max(1, page)
    limit = _clamp(limit, 1, 100)
    total_records = _clamp(total_records, 0, 100_000)
    offset = (page - 1) * limit
    total_pages = math.ceil(total_records / limit)

    if page > total_pages and total_records > 0:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Page number exceeds total pages",
                "page": page,
                "totalPages": total_pages,
                "totalRecords": total_records,
            },
        )

    # Deep offsets are slow in real databases too.
    delay_ms = min(2000, (offset // 1000) * 100)
    if delay_ms > 0:
        await asyncio.sleep(delay_ms / 1000)

    data = harness.large_dataset_page(page, limit, total_records)
    has_next = page < total_pages
    return {
        "data": data,
        "pagination": {
            "page": page,
            "limit": limit,
            "totalRecords": total_records,
            "totalPages": total_pages,
            "hasNextPage": has_next,
            "hasPreviousPage": page > 1,
            "nextPage": page + 1 if has_next else None,
            "previousPage": page - 1 if page > 1 else None,
        },
        "performance": {
            "offset": offset,
            "queryDelayMs": delay_ms,
            "recordsInPage": len(data),
        },
        "links": {
            "self": _dataset_link(page, limit, total_records),
            "next": _dataset_link(page + 1, limit, total_records) if has_next else None,
            "prev": _dataset_link(page - 1, limit, total_records) if page > 1 else None,
        },
    }


@router.get("/pagination/cursor-based", dependencies=network)
async def cursor_based(
    cursor: str | None = None,
    limit: int = 10,
    direction: str = "next",
) -> dict:
    limit = _clamp(limit, 1, 50)
    if cursor:
        try:
            cursor_ms = harness.decode_cursor(cursor)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid cursor format")
    else:
        cursor_ms = int(time.time() * 1000)

    data = harness.cursor_page(cursor_ms, limit, direction)
    next_cursor = harness.encode_cursor(data[-1]["timestamp"]) if data else None
    prev_cursor = harness.encode_cursor(data[0]["timestamp"]) if data else None
    base = f"{router.prefix}/pagination/cursor-based"

    return {
        "data": data,
        "pagination": {
            "limit": limit,
            "direction": direction,
            "hasMore": True,
            "nextCursor": next_cursor if direction == "next" else None,
            "prevCursor": prev_cursor if direction == "prev" else None,
        },
        "cursors": {"current": cursor, "next": next_cursor, "prev": prev_cursor},
        "links": {
            "next": f"{base}?cursor={next_cursor}&limit={limit}&direction=next" if next_cursor else None,
            "prev": f"{base}?cursor={prev_cursor}&limit={limit}&direction=prev" if prev_cursor else None,
        },
    }


@router.get("/pagination/inconsistent", dependencies=network)
async def inconsistent(page: int = 1, limit: int = 5, issue_type: str = "none") -> dict:
    page = max(1, page)
    limit = _clamp(limit, 1, 20)
    total_records = 50
    total_pages = math.ceil(total_records / limit)

    return {
        "data": harness.inconsistent_page(page, limit, issue_type, total_records),
        "pagination": {
            "page": page,
            "limit": limit,
            "totalRecords": total_records,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPreviousPage": page > 1,
        },
        "simulation": {
            "issueType": issue_type,
            "description": harness.PAGINATION_ISSUES.get(issue_type),
        },
        "warning": (
            "This endpoint simulates pagination issues for testing purposes"
            if issue_type != "none"
            else None
        ),
    }
