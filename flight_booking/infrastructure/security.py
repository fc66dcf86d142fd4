import logging
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from flight_booking.domain.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


class TokenService:
    """
    Issues and verifies signed bearer tokens.
    The token subject is the user id.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expires_minutes: int = 60 * 24):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    def issue(self, user_id: int, expires_delta: timedelta | None = None) -> str:
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.expires_minutes)

        now = datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + expires_delta,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """Returns the user id carried by the token."""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise UnauthorizedError("Not authorized, token expired.") from exc
        except JWTError as exc:
            logger.warning("Token verification failed: %s", exc)
            raise UnauthorizedError("Not authorized, token failed.") from exc

        subject = payload.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError) as exc:
            raise UnauthorizedError("Not authorized, token failed.") from exc
