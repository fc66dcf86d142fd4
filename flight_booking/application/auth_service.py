import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from flight_booking.domain.exceptions import DuplicateUserError, UnauthorizedError
from flight_booking.infrastructure.db.models import User
from flight_booking.infrastructure.db.session import transaction
from flight_booking.infrastructure.repositories.user_repository import UserRepository
from flight_booking.infrastructure.security import TokenService, hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Registration, login and token resolution."""

    def __init__(self, session_factory: sessionmaker[Session], tokens: TokenService):
        self.session_factory = session_factory
        self.tokens = tokens

    def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> tuple[User, str]:
        try:
            with transaction(self.session_factory) as db:
                users = UserRepository(db)
                if users.get_by_username(username):
                    raise DuplicateUserError("Username already exists.")
                if users.get_by_email(email):
                    raise DuplicateUserError("Email already exists.")

                user = users.create_user(
                    username=username,
                    email=email,
                    password_hash=hash_password(password),
                    first_name=first_name,
                    last_name=last_name,
                )
        except IntegrityError as exc:
            # Lost a race with a concurrent registration.
            raise DuplicateUserError("Username or email already exists.") from exc

        logger.info("Registered user %s (%s)", user.id, user.username)
        return user, self.tokens.issue(user.id)

    def login(self, username: str, password: str) -> tuple[User, str]:
        with transaction(self.session_factory) as db:
            user = UserRepository(db).get_by_username(username)

        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid credentials.")

        return user, self.tokens.issue(user.id)

    def authenticate(self, token: str) -> User:
        user_id = self.tokens.verify(token)

        with transaction(self.session_factory) as db:
            user = UserRepository(db).get_by_id(user_id)

        if user is None:
            raise UnauthorizedError("Not authorized, user not found.")
        return user
