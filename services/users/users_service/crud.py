"""
CRUD (Create, Read, Update, Delete) operations for the Users service.

This module contains all database operations for user management.
"""
from typing import Optional
from sqlalchemy.orm import Session
from . import models

def get_user(db: Session, user_id: int) -> Optional[models.User]:
    """
    Retrieve a single user by ID.

    Args:
        db: Database session
        user_id: ID of the user to retrieve

    Returns:
        User object or None if not found
    """
    return db.query(models.User).filter(models.User.id == user_id).first()

def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    """
    Retrieve a user by username.

    Args:
        db: Database session
        username: Username to search for

    Returns:
        User object or None if not found
    """
    return db.query(models.User).filter(models.User.username == username).first()

def create_user(db: Session, username: str, password_hash: str, role: str = "user") -> models.User:
    """
    Create a new enabled user in the database.

    Args:
        db: Database session
        username: Unique login name
        password_hash: Already hashed password
        role: User role (default: "user")

    Returns:
        Created User object
    """
    db_user = models.User(
        username=username,
        password_hash=password_hash,
        role=role,
        is_active=True
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user
