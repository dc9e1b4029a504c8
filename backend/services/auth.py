import bcrypt
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_db
from models.database import User as DBUser
from shared.config import config

ALGORITHM = "HS256"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/token")


class User(BaseModel):
    id: int
    username: str
    disabled: bool = False
    is_admin: bool = False


class LoginRequest(BaseModel):
    username: str
    password: str


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


async def get_user(db: AsyncSession, username: str) -> DBUser | None:
    """Get user from database by username."""
    result = await db.execute(select(DBUser).where(DBUser.username == username))
    return result.scalar_one_or_none()


async def authenticate_user(db: AsyncSession, username: str, password: str) -> DBUser | None:
    """Authenticate user credentials."""
    user = await get_user(db, username)
    if not user or user.disabled or not verify_password(password, user.hashed_password):
        return None
    return user


def create_access_token(data: dict[str, str]) -> str:
    """Create JWT access token."""
    return jwt.encode(data, config.get("secret_key"), algorithm=ALGORITHM)


async def get_current_user(
    token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_async_db)
) -> User:
    """Resolve the bearer token to an active user."""
    try:
        payload = jwt.decode(token, config.get("secret_key"), algorithms=[ALGORITHM])
        username = payload.get("sub")
        if not isinstance(username, str):
            raise HTTPException(status_code=401, detail="Invalid token")
    except JWTError as e:
        raise HTTPException(status_code=401, detail="Invalid token") from e
    user = await get_user(db, username)
    if user is None or user.disabled:
        raise HTTPException(status_code=401, detail="User not found")
    return User(id=user.id, username=user.username, disabled=user.disabled, is_admin=user.is_admin)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Reject callers without the admin flag."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return user


router = APIRouter()


@router.post(
    "/token",
    tags=["Authentication"],
    summary="User Login",
    description="Authenticate user credentials and receive JWT access token",
    responses={400: {"description": "Invalid credentials provided"}},
)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_async_db)
):
    """Authenticate user and return JWT access token."""
    user = await authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=400, detail="Incorrect username or password")
    token = create_access_token({"sub": user.username})
    return {"access_token": token, "token_type": "bearer"}


@router.post(
    "/token-json",
    tags=["Authentication"],
    summary="User Login (JSON)",
    description="Authenticate user credentials via JSON and receive JWT access token",
)
async def login_json(login_request: LoginRequest, db: AsyncSession = Depends(get_async_db)):
    """Authenticate user and return JWT access token via JSON."""
    user = await authenticate_user(db, login_request.username, login_request.password)
    if not user:
        raise HTTPException(status_code=400, detail="Incorrect username or password")
    token = create_access_token({"sub": user.username})
    return {"access_token": token, "token_type": "bearer"}


@router.get(
    "/users/me",
    tags=["Authentication"],
    summary="Get Current User",
    description="Retrieve current authenticated user information",
    response_model=User,
)
async def read_users_me(user: User = Depends(get_current_user)):
    """Get current authenticated user profile."""
    return user
