"""API Dependencies - Authentication and roles"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from domain.auth import User, UserInDB
from domain.enums import Role
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Mock user store; the real accounts live in the booking backend
_fake_users_db = {
    "customer": {
        "username": "customer",
        "full_name": "Juan Dela Cruz",
        "email": "juan@example.com",
        "contact_number": "09171234567",
        "plain_password": "customer123",
        "role": Role.CUSTOMER,
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174001",
    },
    "receptionist": {
        "username": "receptionist",
        "full_name": "Front Desk",
        "email": "frontdesk@example.com",
        "plain_password": "receptionist123",
        "role": Role.RECEPTIONIST,
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174002",
    },
    "owner": {
        "username": "owner",
        "full_name": "Resort Owner",
        "email": "owner@example.com",
        "plain_password": "owner123",
        "role": Role.OWNER,
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174003",
    },
}

fake_users_db = _fake_users_db

# Passwords are hashed lazily on first lookup
_password_hash_cache = {}


def _get_hashed_password(username: str) -> str:
    if username not in _password_hash_cache:
        user = _fake_users_db.get(username)
        if user and "plain_password" in user:
            _password_hash_cache[username] = get_password_hash(user["plain_password"])
    return _password_hash_cache.get(username, "")


def get_user(db, username: str):
    if username in db:
        user_dict = db[username].copy()
        if "plain_password" in user_dict:
            user_dict["hashed_password"] = _get_hashed_password(username)
            del user_dict["plain_password"]
        return UserInDB(**user_dict)
    return None


async def get_current_user(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        raise credentials_exception

    user = get_user(_fake_users_db, username=token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


async def get_current_staff_user(current_user: User = Depends(get_current_active_user)):
    if not current_user.is_staff():
        raise HTTPException(status_code=403, detail="Staff access required")
    return current_user
