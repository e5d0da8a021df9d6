from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from models.user import Actor, Role
from utils.config import Settings
from utils.errors import AuthenticationError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_token(actor: Actor, settings: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expires_minutes)
    payload = {
        "id": actor.id,
        "email": actor.email,
        "name": actor.name,
        "role": actor.role.value,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_alg)


def decode_token(token: str, settings: Settings) -> Actor:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")
    if not payload.get("id"):
        raise AuthenticationError("Invalid or expired token")
    return Actor(
        id=payload["id"],
        email=payload.get("email", ""),
        name=payload.get("name", ""),
        role=Role(payload.get("role", Role.USER.value)),
    )
