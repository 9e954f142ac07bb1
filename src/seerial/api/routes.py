"""API route handlers."""

from fastapi import APIRouter, Depends, HTTPException, Query

from seerial.api.dependencies import app_state, get_buffer, get_session
from seerial.core.buffer import ReceiveBuffer
from seerial.core.errors import NotConnectedError, OpenFailedError, WriteFailedError
from seerial.core.models import (
    ErrorResponse,
    ReceivedChunkModel,
    ReceivedResponse,
    SendRequest,
    SendResponse,
    SessionStatusResponse,
)
from seerial.serial.session import SerialSession

router = APIRouter(prefix="/api")


def _status(session: SerialSession) -> SessionStatusResponse:
    return SessionStatusResponse(
        link_address=session.config.link_address,
        baud_rate=session.config.baud_rate,
        state=session.state,
        connected=session.is_connected(),
        last_error=app_state.last_error,
    )


@router.get("/session", response_model=SessionStatusResponse)
async def get_session_status(session: SerialSession = Depends(get_session)):
    """Get the current session state."""
    return _status(session)


@router.post(
    "/session/open",
    response_model=SessionStatusResponse,
    responses={502: {"model": ErrorResponse}},
)
async def open_session(session: SerialSession = Depends(get_session)):
    """Open the serial link (no-op when already connected)."""
    try:
        await session.open()
    except OpenFailedError as e:
        app_state.last_error = str(e)
        raise HTTPException(status_code=502, detail=str(e)) from None

    return _status(session)


@router.post("/session/close", response_model=SessionStatusResponse)
async def close_session(session: SerialSession = Depends(get_session)):
    """Close the serial link (no-op when not connected)."""
    await session.close()
    return _status(session)


@router.post(
    "/session/send",
    response_model=SendResponse,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def send(request: SendRequest, session: SerialSession = Depends(get_session)):
    """Write data to the serial link and wait until it has drained."""
    if request.hex:
        try:
            payload: str | bytes = bytes.fromhex(request.data)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid hex data") from None
    else:
        payload = request.data

    try:
        sent = await session.send(payload, encoding=request.encoding)
    except NotConnectedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    except WriteFailedError as e:
        app_state.last_error = str(e)
        raise HTTPException(status_code=502, detail=str(e)) from None
    except LookupError:
        raise HTTPException(status_code=400, detail=f"Unknown encoding: {request.encoding}") from None
    except UnicodeEncodeError as e:
        raise HTTPException(status_code=400, detail=f"Cannot encode data: {e.reason}") from None

    return SendResponse(success=True, bytes_sent=sent)


@router.get("/received", response_model=ReceivedResponse)
async def get_received(
    limit: int | None = Query(None, ge=1, description="Return only the newest N chunks"),
    buffer: ReceiveBuffer = Depends(get_buffer),
):
    """Get recently received data, oldest first."""
    chunks = buffer.recent(limit)

    return ReceivedResponse(
        count=len(chunks),
        total_bytes=buffer.total_bytes,
        last_update=buffer.last_update,
        chunks=[
            ReceivedChunkModel(
                timestamp=chunk.timestamp,
                text=chunk.text,
                hex=chunk.data.hex(),
                size=len(chunk.data),
            )
            for chunk in chunks
        ],
    )


@router.delete("/received", response_model=ReceivedResponse)
async def clear_received(buffer: ReceiveBuffer = Depends(get_buffer)):
    """Discard all received data."""
    buffer.clear()
    return ReceivedResponse(count=0, total_bytes=0, last_update=None, chunks=[])
