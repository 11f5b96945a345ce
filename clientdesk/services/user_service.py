# clientdesk/services/user_service.py
import logging

from passlib.context import CryptContext
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from starlette.concurrency import run_in_threadpool

from ..core.errors import (
    InvalidCredentialsError,
    PersistenceError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from ..core.sessions import Principal
from ..models.user import User
from ..schemas.user import UserCreate
from .client_service import store_message

logger = logging.getLogger(__name__)

# Argon2: salted per hash, fixed work factor
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

USER_EXISTS_MESSAGE = "A user with this email or username already exists."


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Unknown or malformed hash format
        logger.warning("Stored password hash could not be parsed.")
        return False


class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def register(self, user_create: UserCreate) -> User:
        """
        Create a user unless the email or the username is already taken.

        Raises:
            UserAlreadyExistsError: email or username collision.
            PersistenceError: the store failed (logged, generic message).
        """
        statement = select(User).where(
            or_(User.email == user_create.email, User.username == user_create.username)
        )
        try:
            existing_user = (await self.session.exec(statement)).first()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Registration lookup failed for {user_create.email}: {store_message(e)}")
            raise PersistenceError("Registration failed")
        if existing_user:
            raise UserAlreadyExistsError(USER_EXISTS_MESSAGE)

        # Hashing is deliberately slow, keep it off the event loop
        hashed_password = await run_in_threadpool(hash_password, user_create.password)
        db_user = User(
            username=user_create.username,
            email=user_create.email,
            hashed_password=hashed_password,
        )
        try:
            self.session.add(db_user)
            await self.session.commit()
            await self.session.refresh(db_user)
        except IntegrityError:
            # Lost a race with a concurrent registration
            await self.session.rollback()
            raise UserAlreadyExistsError(USER_EXISTS_MESSAGE)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Registration insert failed for {user_create.email}: {store_message(e)}")
            raise PersistenceError("Registration failed")

        logger.info(f"User registered: {db_user.username} ({db_user.email})")
        return db_user

    async def authenticate(self, email: str, password: str) -> Principal:
        """
        Check credentials and return the session projection of the user.

        Raises:
            UserNotFoundError: no user has this email.
            InvalidCredentialsError: the password does not match.
            PersistenceError: the store failed.
        """
        try:
            user = (await self.session.exec(select(User).where(User.email == email))).first()
        except SQLAlchemyError as e:
            await self.session.rollback()
            message = store_message(e)
            logger.error(f"Login lookup failed: {message}")
            raise PersistenceError(message)

        if user is None:
            raise UserNotFoundError("User not found")

        if not await run_in_threadpool(verify_password, password, user.hashed_password):
            raise InvalidCredentialsError("Invalid credentials")

        return Principal.model_validate(user)
