"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from messaging_scheduler.api.admin import router as admin_router
from messaging_scheduler.api.auth import require_auth
from messaging_scheduler.api.models import (
    ClientEventPayload,
    SendNowRequest,
    session_view_payload,
)
from messaging_scheduler.app_logging import configure_logging
from messaging_scheduler.containers import AppContainer
from messaging_scheduler.domain.dispatch import DispatchMode
from messaging_scheduler.domain.errors import (
    DispatchFailure,
    DispatchInFlight,
    DuplicateSessionError,
    SessionNotFoundError,
    SessionNotReady,
)
from messaging_scheduler.domain.sessions import SessionStatus


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        try:
            restored = await state_container.session_service.restore_sessions()
            logger.info("Restored %d sessions", len(restored))
        except Exception:
            logger.exception("Failed to restore sessions")
        yield
        await state_container.scheduler.shutdown()
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        """Plain banner for humans hitting the root URL."""
        return "Messaging scheduler API is running. See API documentation for usage."

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session/new", dependencies=[Depends(require_auth)])
    async def new_session(request: Request) -> dict[str, object]:
        """Create a session and start its messaging client."""
        state_container: AppContainer = request.app.state.container
        try:
            session_id = await state_container.session_service.create_session()
        except DuplicateSessionError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        return {"success": True, "sessionId": session_id}

    @app.get("/session/{session_id}/qr", dependencies=[Depends(require_auth)])
    async def session_qr(session_id: str, request: Request) -> dict[str, object]:
        """Return the pending authentication challenge for a session."""
        state_container: AppContainer = request.app.state.container
        try:
            view = state_container.session_service.get_session_status(session_id)
        except SessionNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Session not found."
            ) from exc
        if view.status is SessionStatus.READY:
            return {
                "success": True,
                "status": view.status.value,
                "message": "Client is already authenticated.",
            }
        if view.status is not SessionStatus.QR_READY or not view.auth_challenge:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="QR code not ready yet. Please try again in a few seconds.",
            )
        return {"success": True, "status": view.status.value, "qr": view.auth_challenge}

    @app.get("/session/{session_id}/status", dependencies=[Depends(require_auth)])
    async def session_status(session_id: str, request: Request) -> dict[str, object]:
        """Return the lifecycle status of a session."""
        state_container: AppContainer = request.app.state.container
        try:
            view = state_container.session_service.get_session_status(session_id)
        except SessionNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Session not found."
            ) from exc
        return {"success": True, **session_view_payload(view)}

    @app.post("/send-now", dependencies=[Depends(require_auth)])
    async def send_now(body: SendNowRequest, request: Request) -> dict[str, object]:
        """Dispatch messages once and optionally enable scheduled processing."""
        state_container: AppContainer = request.app.state.container
        if not body.session_id or not body.sheet_name or not body.spreadsheet_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="sessionId, sheetName, and spreadsheetId are required.",
            )
        requested_mode = DispatchMode.normalize(body.mode)
        mode = DispatchMode.parse(requested_mode)
        # Unknown modes dispatch with combined flags but never enable scheduling.
        registers = mode.registers_scheduled_work and DispatchMode.names_known_mode(
            requested_mode
        )
        service = state_container.session_service
        try:
            result = await service.request_dispatch(
                body.session_id,
                body.sheet_name,
                body.spreadsheet_id,
                mode,
                register_scheduled_work=registers,
            )
        except SessionNotFoundError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Session not found."
            ) from exc
        except SessionNotReady as exc:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Messaging client is not ready for this session.",
            ) from exc
        except DispatchInFlight as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        except DispatchFailure as exc:
            logger.exception(
                "Error in /send-now", extra={"session_id": exc.session_id}
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=str(exc.cause) or "Internal server error",
            ) from exc

        response: dict[str, object] = {
            "success": True,
            "mode": requested_mode,
            "result": result.model_dump(by_alias=True),
        }
        session = state_container.registry.get_session(body.session_id)
        scheduled = session.scheduled_work if session else None
        if scheduled is not None:
            response["message"] = (
                "Scheduled processing has been enabled for sheet: "
                f"{scheduled.sheet_id}. The server will now check "
                "for due messages automatically."
            )
        return response

    @app.post("/webhooks/client-events", dependencies=[Depends(require_auth)])
    async def client_events(
        payload: ClientEventPayload, request: Request
    ) -> dict[str, str]:
        """Receive lifecycle events from the messaging bridge."""
        state_container: AppContainer = request.app.state.container
        delivered = state_container.session_service.deliver_event(
            payload.session_id, payload.to_event()
        )
        return {"status": "ok" if delivered else "ignored"}

    return app
