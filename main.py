import logging

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from employee_manager.config import Settings
from employee_manager.models.user import User
from employee_manager.routers import auth, task, user
from employee_manager.routers.deps import get_reminder_scheduler
from employee_manager.services.calendar_service import CalendarService
from employee_manager.services.email_service import EmailService
from employee_manager.services.errors import ServiceError
from employee_manager.services.scheduler import ReminderScheduler
from employee_manager.utils.auth import require_admin
from employee_manager.utils.logger import setup_logging

logger = logging.getLogger(__name__)

app = FastAPI(title="Employee Task Manager API")

# Notifier clients are configured once here and shared for the process lifetime
app.state.email_service = EmailService()
app.state.calendar_service = CalendarService.from_settings()
app.state.reminder_scheduler = ReminderScheduler(app.state.email_service)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error leaves as {success: false, message, errors?}
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    content = {"success": False, "message": exc.message}
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error"},
    )


# Route registration
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(user.router, prefix="/users", tags=["Users"])
app.include_router(task.router)


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    setup_logging()
    logger.info("Starting Employee Task Manager API...")
    if Settings.SCHEDULER['enabled']:
        app.state.reminder_scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Employee Task Manager API...")
    app.state.reminder_scheduler.stop()


# Root route
@app.get("/")
def read_root():
    return {"success": True, "message": "Employee Task Manager API"}


@app.get("/health")
def health():
    return {"success": True, "status": "ok"}


@app.get("/scheduler/status")
def get_scheduler_status(
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
    current_user: User = Depends(require_admin)
):
    """Get scheduler status and job information"""
    return {"success": True, "data": scheduler.get_scheduler_status()}


@app.post("/scheduler/trigger/due-soon")
def trigger_due_soon_check(
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
    current_user: User = Depends(require_admin)
):
    """Manually trigger the due date reminder check"""
    sent = scheduler.check_tasks_due_soon()
    return {"success": True, "message": f"Due date reminders sent: {sent}"}
