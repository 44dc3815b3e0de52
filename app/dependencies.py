"""
Request-scoped service factories
Long-lived collaborators live on app.state and are built by create_app()
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.email_service import EmailService
from app.services.file_storage import FileStorage
from app.services.user_service import UserService


def get_user_service(request: Request, db: Session = Depends(get_db)) -> UserService:
    return UserService(db, request.app.state.password_hasher)


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_file_storage(request: Request) -> FileStorage:
    return request.app.state.file_storage
