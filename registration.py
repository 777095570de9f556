# registration.py
import logging
from typing import Awaitable, Callable, NamedTuple, Optional

from pydantic import BaseModel

from config import MIN_AGE
from database import Store
from errors import NotFoundError, ValidationError
from models import (
    DEFAULT_BIO,
    DEFAULT_GENDER,
    DEFAULT_INTERESTED_IN,
    DEFAULT_LOOKING_FOR,
    User,
)
from uploads import UploadedFile, discard_uploads
from utils import new_user_id, parse_interests, sanitize_input, utcnow

logger = logging.getLogger(__name__)

ImageSafetyCheck = Callable[[str], Awaitable[bool]]


async def check_image_safety(file_path: str) -> bool:
    # No detector is wired in yet; every image is approved.
    return True


class RegistrationForm(BaseModel):
    """Raw registration fields as submitted. Everything is optional text."""
    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[str] = None
    bio: Optional[str] = None
    gender: Optional[str] = None
    interestedIn: Optional[str] = None
    lookingFor: Optional[str] = None
    interests: Optional[str] = None  # JSON array


class RegistrationResult(NamedTuple):
    user: User
    is_returning: bool


def _parse_age(raw: Optional[str]) -> Optional[int]:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


async def register_user(
    store: Store,
    form: RegistrationForm,
    photo: Optional[UploadedFile] = None,
    social_qr: Optional[UploadedFile] = None,
    safety_check: ImageSafetyCheck = check_image_safety,
) -> RegistrationResult:
    """
    Create an account, or return the existing one for a known email.

    Any failure, store errors included, removes the uploads of this request
    before the error propagates.
    """
    uploads = (photo, social_qr)
    try:
        result = await _create_account(store, form, photo, social_qr, safety_check)
    except Exception:
        discard_uploads(*uploads)
        raise
    if result.is_returning:
        # nothing references this request's files
        discard_uploads(*uploads)
    return result


async def _create_account(
    store: Store,
    form: RegistrationForm,
    photo: Optional[UploadedFile],
    social_qr: Optional[UploadedFile],
    safety_check: ImageSafetyCheck,
) -> RegistrationResult:
    db = store.load()

    email = (sanitize_input(form.email) or "").lower()
    if not email:
        raise ValidationError("Email is required")

    existing = db.find_user_by_email(email)
    if existing is not None:
        return RegistrationResult(existing, True)

    name = sanitize_input(form.name)
    age = _parse_age(form.age)
    if not name or age is None or age < MIN_AGE:
        raise ValidationError("Invalid data or under 18.")

    if social_qr is None:
        raise ValidationError("Social QR is mandatory! Please upload yours.")

    if photo is not None and not await safety_check(photo.path):
        logger.info("Photo rejected by safety check for %s", email)
        raise ValidationError("AI blocked your photo! Please use a cleaner one.")

    if not await safety_check(social_qr.path):
        logger.info("Social QR rejected by safety check for %s", email)
        raise ValidationError("AI blocked your Social QR! Please use a valid QR code.")

    user = User(
        id=new_user_id(u.id for u in db.users),
        name=name,
        email=email,
        age=age,
        bio=sanitize_input(form.bio) or DEFAULT_BIO,
        gender=sanitize_input(form.gender) or DEFAULT_GENDER,
        interested_in=sanitize_input(form.interestedIn) or DEFAULT_INTERESTED_IN,
        looking_for=sanitize_input(form.lookingFor) or DEFAULT_LOOKING_FOR,
        interests=parse_interests(form.interests),
        img=photo.url if photo else None,
        social_qr=social_qr.url,
        registered_at=utcnow(),
    )
    db.users.append(user)
    store.save(db)
    logger.info("Registered user %s (%s)", user.id, user.email)
    return RegistrationResult(user, False)


def login(store: Store, email: Optional[str]) -> User:
    """Email-only login: look the account up case-insensitively."""
    email = sanitize_input(email)
    if not email:
        raise ValidationError("Email is required")
    user = store.load().find_user_by_email(email)
    if user is None:
        raise NotFoundError("User not found")
    return user
