"""FastAPI dependencies for authentication, repositories and the simulation service."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from todo_api.core.security import get_user_id_from_token
from todo_api.core.simulation import SimulationService
from todo_api.db.postgres import PostgresDB, get_db
from todo_api.db.stats import StatsRepository

# Missing credentials are reported by the dependencies themselves.
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    id: int
    username: str
    email: str
    first_name: str | None = None
    last_name: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "CurrentUser":
        return cls(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
        )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: PostgresDB = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token to an existing user.

    Raises:
        HTTPException: 401 when no token is sent, 403 when the token is
            invalid or expired or its user no longer exists.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = get_user_id_from_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )

    row = db.get_user(user_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not found")
    return CurrentUser.from_row(row)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: PostgresDB = Depends(get_db),
) -> CurrentUser | None:
    """Like ``get_current_user`` but anonymous callers and bad tokens yield None."""
    if credentials is None:
        return None

    try:
        user_id = get_user_id_from_token(credentials.credentials)
    except JWTError:
        return None

    row = db.get_user(user_id)
    if row is None:
        return None
    return CurrentUser.from_row(row)


def get_stats_repository(db: PostgresDB = Depends(get_db)) -> StatsRepository:
    return StatsRepository(db)


def get_simulation(request: Request) -> SimulationService:
    return request.app.state.simulation
