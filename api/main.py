"""
FastAPI application for the fuel request workflow.

This application provides the inbound triggers for the lifecycle core:
1. Driver submissions (/api/fuel-entry) and manager decisions
   (/api/manager/update-status)
2. Push token registration and profile lookups
3. Request, notification and finance read endpoints

Every response is an ActionResult envelope: {success, message, data?}.

Run with:
    uvicorn api.main:app --reload

Then visit http://localhost:8000/docs for interactive API documentation.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.schemas import FuelEntryRequest, SaveTokenRequest, StatusUpdateRequest
from lifecycle.controller import TransitionResult
from lifecycle.runtime import Runtime, build_runtime
from shared.config import get_settings
from shared.errors import FuelRequestError, NotFoundError, StorageError, ValidationError
from shared.models import ActionResult, RequestStatus

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("api")


# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the runtime (unless one was injected), start it, stop it on shutdown."""
    if getattr(app.state, "runtime", None) is None:
        app.state.runtime = build_runtime(get_settings())
    runtime: Runtime = app.state.runtime
    runtime.start()
    logger.info("Fuel request API started")
    yield
    runtime.stop()
    logger.info("Shutting down")


def get_runtime(request: Request) -> Runtime:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise StorageError("Service is not started")
    return runtime


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ActionResult(success=False, message=message).model_dump(),
    )


def _transition_data(result: TransitionResult) -> dict:
    return {
        "requestId": result.request_id,
        "status": result.status.value,
        "notified": len(result.outcomes),
        "unrecorded": [o.recipient_id for o in result.unrecorded],
    }


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    """
    Create the FastAPI app.

    Args:
        runtime: A pre-built runtime (tests); built from settings at startup if omitted.
    """
    app = FastAPI(
        title="Fuel Request API",
        description="Fuel purchase requests with manager approval and notifications.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    @app.exception_handler(FuelRequestError)
    async def handle_fuel_request_error(request: Request, exc: FuelRequestError):
        if isinstance(exc, StorageError):
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return _failure(exc.status_code, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        return _failure(400, f"Invalid request: {fields}")

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/", tags=["Health"])
    def root():
        return {"message": "Fuel Management API is running"}

    @app.get("/health", tags=["Health"])
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "fuel-request-api"}

    # =========================================================================
    # Users
    # =========================================================================

    @app.post("/api/save-token", response_model=ActionResult, tags=["Users"])
    def save_token(body: SaveTokenRequest, runtime: Runtime = Depends(get_runtime)):
        """Store the push token of a user's device."""
        if body.user_id is None or not body.token:
            raise ValidationError("userId & token required")
        runtime.store.save_push_token(body.user_id, body.token)
        return ActionResult(success=True, message="Token saved")

    @app.get("/api/get-user/{user_id}", response_model=ActionResult, tags=["Users"])
    def get_user(user_id: int, runtime: Runtime = Depends(get_runtime)):
        user = runtime.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return ActionResult(success=True, message="OK", data=user.model_dump(mode="json"))

    # =========================================================================
    # Lifecycle triggers
    # =========================================================================

    @app.post("/api/fuel-entry", response_model=ActionResult, tags=["Fuel Requests"])
    def submit_fuel_entry(body: FuelEntryRequest, runtime: Runtime = Depends(get_runtime)):
        """
        Submit a fuel request (driver). Every manager is notified.

        Notification problems do not fail the call; they change the message.
        """
        result = runtime.controller.submit(body.user_id, body.purchase_facts(), body.receipt)
        message = "Fuel request submitted"
        if not result.fully_recorded:
            message += "; some notifications could not be recorded"
        return ActionResult(success=True, message=message, data=_transition_data(result))

    @app.post("/api/manager/update-status", response_model=ActionResult, tags=["Fuel Requests"])
    def update_status(body: StatusUpdateRequest, runtime: Runtime = Depends(get_runtime)):
        """Approve or reject a pending request (manager). The driver is notified."""
        if body.request_id is None:
            raise ValidationError("requestId is required")
        result = runtime.controller.decide(body.request_id, body.status)
        message = "Status updated successfully"
        if not result.fully_recorded:
            message += "; the driver notification could not be recorded"
        return ActionResult(success=True, message=message, data=_transition_data(result))

    # =========================================================================
    # Read endpoints
    # =========================================================================

    @app.get("/api/fuel-requests", response_model=ActionResult, tags=["Fuel Requests"])
    def list_fuel_requests(
        driver_id: Optional[int] = Query(default=None, alias="driverId"),
        status: Optional[list[RequestStatus]] = Query(default=None),
        runtime: Runtime = Depends(get_runtime),
    ):
        """List requests, optionally by driver and/or status."""
        if driver_id is not None:
            requests = runtime.store.list_by_owner(driver_id)
            if status:
                requests = [r for r in requests if r.status in status]
        elif status:
            requests = runtime.store.list_by_status(status)
        else:
            requests = runtime.store.list_all()
        return ActionResult(
            success=True,
            message="OK",
            data=[r.model_dump(mode="json") for r in requests],
        )

    @app.get("/api/fuel-requests/{request_id}", response_model=ActionResult, tags=["Fuel Requests"])
    def get_fuel_request(request_id: int, runtime: Runtime = Depends(get_runtime)):
        request = runtime.store.get(request_id)
        if request is None:
            raise NotFoundError(f"Fuel request not found: {request_id}")
        data = request.model_dump(mode="json")
        data["receipt_url"] = runtime.finance.receipt_url(request_id)
        return ActionResult(success=True, message="OK", data=data)

    @app.get("/api/notifications/{user_id}", response_model=ActionResult, tags=["Notifications"])
    def list_notifications(user_id: int, runtime: Runtime = Depends(get_runtime)):
        """A user's in-app notifications, newest first."""
        notifications = runtime.store.list_notifications(user_id)
        return ActionResult(
            success=True,
            message="OK",
            data=[n.model_dump(mode="json") for n in notifications],
        )

    # =========================================================================
    # Finance
    # =========================================================================

    @app.get("/api/finance/expenses", response_model=ActionResult, tags=["Finance"])
    def finance_expenses(runtime: Runtime = Depends(get_runtime)):
        """Approved requests with driver name and receipt link, newest first."""
        lines = runtime.finance.approved_expenses()
        return ActionResult(
            success=True,
            message="OK",
            data=[line.model_dump(mode="json") for line in lines],
        )

    @app.get("/api/finance/summary", response_model=ActionResult, tags=["Finance"])
    def finance_summary(runtime: Runtime = Depends(get_runtime)):
        return ActionResult(
            success=True,
            message="OK",
            data=runtime.finance.summary().model_dump(),
        )

    return app


app = create_app()
