import logging

import bcrypt
import pymongo
from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import USERS, LIST_TIMEOUT, SHORT_TIMEOUT, create_document, get_db, get_documents
from errors import InternalError, ValidationError
from schemas import RegisterRequest, User, UserPublic

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

BCRYPT_ROUNDS = 10


# Utilities

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode()


def verify_password(password: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), stored.encode())
    except ValueError:
        return False


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Database = Depends(get_db)):
    """Create a user account. Email uniqueness is not checked."""
    fields = (payload.email, payload.password, payload.first_name, payload.last_name)
    if any(not f.strip() for f in fields):
        raise ValidationError("Incomplete registration details")

    try:
        pwd = hash_password(payload.password)
    except (ValueError, TypeError):
        logger.exception("Password hashing failed")
        raise InternalError("Failed to process password")

    user = User(
        email=payload.email,
        password_hash=pwd,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )

    try:
        with pymongo.timeout(SHORT_TIMEOUT):
            create_document(db, USERS, user)
    except PyMongoError:
        logger.exception("Failed to insert user %s", user.id)
        raise InternalError("Failed to create user")

    logger.info("Registered user %s", user.id)
    return {
        "Message": "User registered successfully",
        "user": {
            "id": user.id,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
        },
    }


@router.post("/login", response_class=PlainTextResponse)
def login():
    # The request body is ignored: no credentials are checked and no
    # session is issued yet.
    return "Login endpoint - to be implemented"


@router.get("/users")
def get_all_users(db: Database = Depends(get_db)):
    try:
        with pymongo.timeout(LIST_TIMEOUT):
            docs = get_documents(db, USERS)
    except PyMongoError:
        logger.exception("Failed to list users")
        raise InternalError("Failed to fetch users")
    return {"users": [UserPublic(**d) for d in docs]}
