import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from campus_backend.api.attendance import attendance_router
from campus_backend.api.auth import auth_router
from campus_backend.api.courses import course_router
from campus_backend.api.departments import department_router
from campus_backend.api.export import export_router
from campus_backend.api.grades import grade_router
from campus_backend.api.groups import group_router
from campus_backend.api.notifications import notification_router
from campus_backend.api.responses import failure
from campus_backend.api.schedules import schedule_router
from campus_backend.api.stats import stats_router
from campus_backend.api.students import student_router
from campus_backend.api.teachers import teacher_router
from campus_backend.database import get_db, get_engine
from campus_backend.interface.tokens import encrypt_password
from campus_backend.middleware import RouteGuardMiddleware
from campus_backend.model import Base
from campus_backend.model.auth import User
from campus_backend.permissions.matrix import Role
from campus_backend.settings import settings
from campus_backend.web.pages import page_router

logger = logging.getLogger(__name__)


def init_admin_user(db: Session):

    email = settings.ADMIN_EMAIL
    password = settings.ADMIN_PASSWORD

    if not email or not password:
        return

    admin = db.query(User).filter(func.lower(User.email) == email.lower()).first()

    if admin is not None:
        return

    try:
        db.add(User(
            name="Administrator",
            email=email.lower(),
            password=encrypt_password(password),
            role=Role.ADMIN.value,
        ))
        db.commit()
        logger.info(f"Admin user {email} created")

    except Exception as e:
        db.rollback()
        logger.error(f"Admin user could not be created: {e}")
        raise


def startup_logic():

    if settings.DEBUG_MODE == "development":
        Base.metadata.create_all(get_engine())

    with next(get_db()) as db:
        init_admin_user(db)


@asynccontextmanager
async def lifespan(app: FastAPI):
    startup_logic()
    yield


app = FastAPI(lifespan=lifespan)

origins = [
    "*"
]

app.add_middleware(RouteGuardMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=failure(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{location}: {first.get('msg')}" if location else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=failure(message))


app.include_router(
    auth_router,
    prefix="/api/auth",
    tags=["auth"]
)

app.include_router(
    student_router,
    prefix="/api/students",
    tags=["students"]
)

app.include_router(
    teacher_router,
    prefix="/api/teachers",
    tags=["teachers"]
)

app.include_router(
    course_router,
    prefix="/api/courses",
    tags=["courses"]
)

app.include_router(
    department_router,
    prefix="/api/departments",
    tags=["departments"]
)

app.include_router(
    group_router,
    prefix="/api/groups",
    tags=["groups"]
)

app.include_router(
    grade_router,
    prefix="/api/grades",
    tags=["grades"]
)

app.include_router(
    schedule_router,
    prefix="/api/schedules",
    tags=["schedules"]
)

app.include_router(
    attendance_router,
    prefix="/api/attendance",
    tags=["attendance"]
)

app.include_router(
    notification_router,
    prefix="/api/notifications",
    tags=["notifications"]
)

app.include_router(
    stats_router,
    prefix="/api/stats",
    tags=["stats"]
)

app.include_router(
    export_router,
    prefix="/api/export",
    tags=["export"]
)

app.include_router(page_router)
