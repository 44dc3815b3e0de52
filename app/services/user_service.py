"""
User service for authentication and account management
Handles all credential-store business logic
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime, timedelta
from typing import Optional, Tuple
import logging

from app.models.user import User
from app.schemas.user import SignupRequest, PasswordChange, ProfileUpdate
from app.auth.hashing import PasswordHasher, TokenHasher, generate_token
from app.utils.error_handler import (
    AppError, DatabaseError, DuplicateEmail, ExpiredOrInvalidToken,
    InvalidCredentials, NotFoundError, ValidationError,
)

logger = logging.getLogger(__name__)


class UserService:
    """Service for user management operations"""

    def __init__(self, db: Session, password_hasher: PasswordHasher, token_hasher: Optional[TokenHasher] = None):
        self.db = db
        self.password_hasher = password_hasher
        self.token_hasher = token_hasher or TokenHasher()

    async def create_user(self, user_data: SignupRequest) -> User:
        """Create a new user account"""
        try:
            if await self.get_user_by_email(user_data.email):
                raise DuplicateEmail()

            db_user = User(
                name=user_data.name,
                email=user_data.email,
                hashed_password=self.password_hasher.hash(user_data.password),
                role=user_data.role,
                phone=user_data.phone,
                address=user_data.address,
                is_verified=False,
            )

            self.db.add(db_user)
            self.db.commit()
            self.db.refresh(db_user)

            logger.info(f"Created new user: {db_user.id} ({db_user.role})")
            return db_user

        except AppError:
            raise
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            self.db.rollback()
            raise DuplicateEmail()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user: {e}")
            raise DatabaseError("Error creating user", e)

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Return the user for a valid email/password pair, else None"""
        try:
            user = await self.get_user_by_email(email)

            if not user:
                logger.warning("Login attempt with unknown email")
                return None

            if not self.password_hasher.verify(password, user.hashed_password):
                logger.warning(f"Failed login attempt for user: {user.id}")
                return None

            user.last_login = datetime.utcnow()
            self.db.commit()

            logger.info(f"Successful login for user: {user.id}")
            return user

        except Exception as e:
            self.db.rollback()
            logger.error(f"Authentication error: {e}")
            raise DatabaseError("Error finding user", e)

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        try:
            return self.db.query(User).filter(User.id == user_id).first()
        except Exception as e:
            logger.error(f"Failed to get user by ID {user_id}: {e}")
            raise DatabaseError("Failed to retrieve user", e)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        try:
            return self.db.query(User).filter(User.email == email.strip().lower()).first()
        except Exception as e:
            logger.error(f"Failed to get user by email: {e}")
            raise DatabaseError("Failed to retrieve user", e)

    async def update_profile(self, user: User, profile: ProfileUpdate) -> User:
        """Update the name, phone and address fields that were provided"""
        try:
            for field, value in profile.dict(exclude_unset=True).items():
                if value:
                    setattr(user, field, value)

            self.db.commit()
            self.db.refresh(user)

            logger.info(f"Updated profile for user: {user.id}")
            return user

        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user.id}: {e}")
            raise DatabaseError("Failed to update profile", e)

    async def set_avatar(self, user: User, avatar_url: str) -> User:
        try:
            user.image = avatar_url
            self.db.commit()
            self.db.refresh(user)
            return user
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to set avatar for user {user.id}: {e}")
            raise DatabaseError("Failed to update avatar", e)

    async def change_password(self, user_id: int, password_data: PasswordChange) -> bool:
        """Change a password after re-verifying the current one"""
        try:
            user = await self.get_user_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")

            if not self.password_hasher.verify(password_data.current_password, user.hashed_password):
                raise InvalidCredentials("Current password is incorrect", status_code=400)

            user.hashed_password = self.password_hasher.hash(password_data.new_password)
            self.db.commit()

            logger.info(f"Password changed for user: {user.id}")
            return True

        except AppError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to change password for user {user_id}: {e}")
            raise DatabaseError("Failed to change password", e)

    async def start_password_reset(self, email: str, ttl_minutes: int) -> Tuple[User, str]:
        """Store a fresh reset token digest; returns the user and the plain token"""
        try:
            user = await self.get_user_by_email(email)
            if not user:
                raise NotFoundError("No user found with this email address")

            token = generate_token()
            user.reset_password_token = self.token_hasher.hash(token)
            user.reset_password_expire = datetime.utcnow() + timedelta(minutes=ttl_minutes)
            self.db.commit()

            logger.info(f"Password reset requested for user: {user.id}")
            return user, token

        except AppError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to start password reset: {e}")
            raise DatabaseError("Failed to start password reset", e)

    async def cancel_password_reset(self, user: User) -> None:
        user.reset_password_token = None
        user.reset_password_expire = None
        self.db.commit()

    async def reset_password(self, token: str, new_password: str) -> User:
        """Consume a reset token; the token cannot be used twice"""
        try:
            user = self.db.query(User).filter(
                User.reset_password_token == self.token_hasher.hash(token),
                User.reset_password_expire > datetime.utcnow(),
            ).first()

            if not user:
                raise ExpiredOrInvalidToken("Invalid or expired reset token")

            user.hashed_password = self.password_hasher.hash(new_password)
            user.reset_password_token = None
            user.reset_password_expire = None
            self.db.commit()

            logger.info(f"Password reset completed for user: {user.id}")
            return user

        except AppError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to reset password: {e}")
            raise DatabaseError("Error resetting password", e)

    async def start_email_verification(self, email: str) -> Tuple[User, str]:
        """Store a verification token digest; returns the user and the plain token"""
        try:
            user = await self.get_user_by_email(email)
            if not user:
                raise NotFoundError("No user found with this email")

            if user.is_verified:
                raise ValidationError("Email already verified")

            token = generate_token()
            user.verification_token = self.token_hasher.hash(token)
            self.db.commit()

            return user, token

        except AppError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to start email verification: {e}")
            raise DatabaseError("Failed to start email verification", e)

    async def cancel_email_verification(self, user: User) -> None:
        user.verification_token = None
        self.db.commit()

    async def verify_email(self, token: str) -> User:
        """Mark the owner of a verification token as verified"""
        try:
            user = self.db.query(User).filter(
                User.verification_token == self.token_hasher.hash(token)
            ).first()

            if not user:
                raise ExpiredOrInvalidToken("Invalid verification token")

            user.is_verified = True
            user.verification_token = None
            self.db.commit()

            logger.info(f"Verified email for user: {user.id}")
            return user

        except AppError:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to verify email: {e}")
            raise DatabaseError("Failed to verify email", e)
