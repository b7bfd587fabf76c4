"""
Users Service FastAPI Application.

This module implements the account side of the inventory manager: users register,
log in and receive a JWT that the Inventory service accepts. Accounts are stored
in PostgreSQL.

The service includes:
- Authentication endpoints (register, login)
- The current user endpoint
- A health check endpoint for service monitoring and orchestration

Attributes:
    app (FastAPI): The FastAPI application instance configured with the title "users-service".
"""
import logging
from fastapi import FastAPI, Depends, HTTPException, status
from sqlalchemy.orm import Session

from . import crud, models, schemas, auth
from .config import LOG_LEVEL
from .database import engine, get_db

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# Create database tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="users-service")

@app.get("/healthz", response_model=dict)
def health():
    """
    Health check endpoint for the users service.

    Returns:
        dict: A dictionary containing the health status of the service.
            - status (str): Always returns "healthy" when the service is operational.

    Example:
        GET /healthz
        Response: {"status": "healthy"}
    """
    return {"status": "healthy"}

@app.post("/register", response_model=schemas.Token, status_code=status.HTTP_201_CREATED)
def register(user: schemas.UserRegister, db: Session = Depends(get_db)):
    """
    Register a new user account.

    Args:
        user: User registration data (username, password)
        db: Database session (injected)

    Returns:
        JWT access token

    Raises:
        HTTPException: 409 if the username is taken
    """
    username = user.username.strip()
    if crud.get_user_by_username(db, username=username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")

    db_user = crud.create_user(db, username=username, password_hash=auth.get_password_hash(user.password))
    logger.info(f"Registered user {db_user.id} ({db_user.username})")
    return schemas.Token(access_token=auth.create_user_token(db_user))

@app.post("/login", response_model=schemas.Token)
def login(credentials: schemas.UserLogin, db: Session = Depends(get_db)):
    """
    Authenticate and login a user.

    Args:
        credentials: User login credentials (username, password)
        db: Database session (injected)

    Returns:
        JWT access token

    Raises:
        HTTPException: 401 if credentials are invalid
        HTTPException: 403 if the account is disabled
    """
    user = auth.authenticate_user(db, credentials.username, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")

    return schemas.Token(access_token=auth.create_user_token(user))

@app.get("/me", response_model=schemas.User)
def get_current_user_info(current_user: models.User = Depends(auth.get_current_user)):
    """
    Get current authenticated user information.

    Args:
        current_user: Current authenticated user (injected)

    Returns:
        Current user object
    """
    return current_user
