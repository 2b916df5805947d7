"""FastAPI entrypoint for the test-series attempt engine."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from exam_portal.security import hash_password
from exam_portal.config import settings
from exam_portal.database import create_db_and_tables, engine
from exam_portal.errors import AttemptError, ValidationError
from exam_portal.models import User
from exam_portal.permissions import Role
from exam_portal.routers import attempts as attempts_router_module
from exam_portal.routers import auth as auth_router_module

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Test Series Attempt Engine")

HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "not_authenticated",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}


@app.exception_handler(AttemptError)
async def attempt_error_handler(request: Request, exc: AttemptError):
    """Render a business error with the code of the precondition that failed."""
    return JSONResponse(status_code=exc.status_code, content={"code": exc.code, "detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies the same way as missing business fields."""
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", []) if part != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"code": ValidationError.code, "detail": errors},
    )


# Registered on Starlette's base class so routing 404/405 errors get the same shape.
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_ERROR_CODES.get(exc.status_code, "error")
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": code, "detail": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("storage failure on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"code": "internal_error", "detail": "Internal server error"},
    )


# Session middleware for simple cookie-based authentication
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key)

# Routers
app.include_router(auth_router_module.router, prefix="/auth", tags=["auth"])
app.include_router(attempts_router_module.router, prefix="/api", tags=["attempts"])


@app.on_event("startup")
def on_startup():
    """Initialize database schema and seed a default admin."""
    create_db_and_tables()
    with Session(engine) as session:
        existing_admin = session.exec(select(User).where(User.role == Role.ADMIN.value)).first()
        if not existing_admin:
            admin_user = User(
                name="System Admin",
                email=settings.seed_admin_email,
                password_hash=hash_password(settings.seed_admin_password),
                role=Role.ADMIN.value,
            )
            session.add(admin_user)
            session.commit()
            logger.info("Seeded default admin user: %s", settings.seed_admin_email)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
