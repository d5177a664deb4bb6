"""Voice conversation session API.

  POST /api/v1/voice/sessions              → start a session for an agent
  GET  /api/v1/voice/sessions/{session_id} → read a started session back

The session id is the request id of the call that started it. A request id
that already names a live session is rejected with 409.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from launchpad.providers.base import ProviderAPIError, ProviderNotFoundError
from launchpad.voice.sessions import SessionExistsError, VoiceSessionService

logger = logging.getLogger(__name__)


class StartSessionBody(BaseModel):
    agent_id: str = Field(min_length=1)


def create_voice_router(sessions: VoiceSessionService) -> APIRouter:
    """Create the voice session router."""
    router = APIRouter(prefix='/api/v1/voice', tags=['voice'])

    @router.post('/sessions', status_code=201)
    async def start_session(body: StartSessionBody, request: Request):
        session_id = getattr(request.state, 'request_id', None) or str(uuid.uuid4())
        try:
            session = await sessions.start(agent_id=body.agent_id, session_id=session_id)
        except SessionExistsError:
            return JSONResponse(
                status_code=409,
                content={
                    'error': 'session_exists',
                    'detail': f'Voice session {session_id!r} already exists.',
                },
            )
        except ProviderNotFoundError:
            return JSONResponse(
                status_code=404,
                content={
                    'error': 'agent_not_found',
                    'detail': f'Voice agent {body.agent_id!r} not found.',
                },
            )
        except ProviderAPIError as exc:
            logger.warning(
                'Could not start voice session for agent %s',
                body.agent_id,
                extra={'agent_id': body.agent_id, 'status_code': exc.status_code},
                exc_info=True,
            )
            return JSONResponse(
                status_code=502,
                content={'error': 'voice_service_error', 'detail': str(exc)},
            )
        return session.as_dict()

    @router.get('/sessions/{session_id}')
    async def get_session(session_id: str):
        session = await sessions.get(session_id)
        if session is None:
            return JSONResponse(
                status_code=404,
                content={
                    'error': 'session_not_found',
                    'detail': f'No voice session {session_id!r}.',
                },
            )
        return session.as_dict()

    return router
