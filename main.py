import logging
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Form, Header, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from admin import SharedSecretAuthorizer, compute_stats, delete_user, list_users
from chat import get_thread, post_message
from config import ADMIN_SECRET, API_HOST, API_PORT, DEFAULT_ADMIN_SECRET, LOG_LEVEL, UPLOAD_DIR
from database import Store, get_store
from errors import LoveMatchError
from matcher import find_matches_for_user
from models import dump
from registration import ImageSafetyCheck, RegistrationForm, check_image_safety, login, register_user
from uploads import discard_uploads, save_upload

logger = logging.getLogger(__name__)

if ADMIN_SECRET == DEFAULT_ADMIN_SECRET:
    print("⚠ WARNING: ADMIN_SECRET is still the default. Please set a secure key in your .env")

app = FastAPI(title="LoveMatch Server")


# ----------------------
# Pydantic models
# ----------------------
class LoginPayload(BaseModel):
    email: Optional[str] = None


class MessagePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender: Optional[int] = Field(None, alias="from")
    recipient: Optional[int] = Field(None, alias="to")
    text: Optional[str] = None


# ----------------------
# Collaborators (overridable in tests)
# ----------------------
def get_authorizer() -> SharedSecretAuthorizer:
    return SharedSecretAuthorizer(ADMIN_SECRET)


def get_safety_check() -> ImageSafetyCheck:
    return check_image_safety


def get_upload_dir() -> str:
    return UPLOAD_DIR


def admin_key_query(key: Optional[str] = None, authorizer: SharedSecretAuthorizer = Depends(get_authorizer)):
    authorizer.require(key)


def admin_key_header(
    x_admin_key: Optional[str] = Header(None),
    authorizer: SharedSecretAuthorizer = Depends(get_authorizer),
):
    authorizer.require(x_admin_key)


@app.exception_handler(LoveMatchError)
async def lovematch_error_handler(request: Request, exc: LoveMatchError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.get("/health")
def health():
    return {"status": "ok", "service": "LoveMatch server"}


# ----------------------
# Accounts
# ----------------------
@app.post("/api/login")
def login_route(payload: LoginPayload, store: Store = Depends(get_store)):
    user = login(store, payload.email)
    return {"success": True, "user": dump(user)}


@app.post("/api/register")
async def register_route(
    name: Optional[str] = Form(None),
    age: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    interestedIn: Optional[str] = Form(None),
    lookingFor: Optional[str] = Form(None),
    interests: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    socialQr: Optional[UploadFile] = File(None),
    store: Store = Depends(get_store),
    safety_check: ImageSafetyCheck = Depends(get_safety_check),
    upload_dir: str = Depends(get_upload_dir),
):
    form = RegistrationForm(
        name=name, age=age, email=email, bio=bio, gender=gender,
        interestedIn=interestedIn, lookingFor=lookingFor, interests=interests,
    )
    photo_file = await save_upload(photo, upload_dir)
    try:
        qr_file = await save_upload(socialQr, upload_dir)
    except Exception:
        discard_uploads(photo_file)
        raise

    result = await register_user(store, form, photo_file, qr_file, safety_check)
    return {"success": True, "user": dump(result.user), "isReturning": result.is_returning}


# ----------------------
# Matching & chat
# ----------------------
@app.get("/api/matches")
def matches_route(user_id: Optional[int] = Query(None, alias="userId"), store: Store = Depends(get_store)):
    matches = find_matches_for_user(store.load(), user_id) if user_id is not None else None
    if matches is None:
        return {"source": "none", "matches": []}
    return {"source": "real", "matches": [dump(m) for m in matches]}


@app.get("/api/messages")
def thread_route(
    sender: Optional[int] = Query(None, alias="from"),
    recipient: Optional[int] = Query(None, alias="to"),
    store: Store = Depends(get_store),
):
    if sender is None or recipient is None:
        return []
    return [dump(m) for m in get_thread(store, sender, recipient)]


@app.post("/api/messages")
def post_message_route(payload: MessagePayload, store: Store = Depends(get_store)):
    message = post_message(store, payload.sender, payload.recipient, payload.text)
    return {"success": True, "message": dump(message)}


# ----------------------
# Admin
# ----------------------
@app.get("/api/admin/users", dependencies=[Depends(admin_key_query)])
def admin_users_route(store: Store = Depends(get_store)):
    return [dump(u) for u in list_users(store)]


@app.delete("/api/admin/delete", dependencies=[Depends(admin_key_header)])
def admin_delete_route(user_id: Optional[str] = Query(None, alias="id"), store: Store = Depends(get_store)):
    delete_user(store, user_id)
    return {"success": True}


@app.get("/api/admin/stats", dependencies=[Depends(admin_key_query)])
def admin_stats_route(store: Store = Depends(get_store)):
    return dump(compute_stats(store))


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL)
    logger.info("Serving LoveMatch on %s:%s", API_HOST, API_PORT)
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())
