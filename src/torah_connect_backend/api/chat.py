'''
API endpoints for chat: conversations, messages, meeting requests and the
refetch notification WebSocket.
'''
from typing import Annotated
from uuid import UUID
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from ..database import engine as db_engine
from ..database import models as db_models
from ..models import chat as chat_models
from ..services.security import verify_token_and_get_user, resolve_user_from_token
from ..services.user_service import UserService
from ..services.chat_service import ChatService
from ..services.realtime import chat_event_manager
from ..common.logger import log


class ChatAPI:
    def __init__(self):
        self.router = APIRouter(
                prefix="/chat",
                tags=["Chat"])
        self._register_routes()

    def _register_routes(self):
        self.router.add_api_route(
                "/conversations",
                self.get_conversations,
                methods=["GET"],
                response_model=list[chat_models.ConversationRead])
        self.router.add_api_route(
                "/conversations/{conversation_id}/messages",
                self.get_messages,
                methods=["GET"],
                response_model=list[chat_models.ChatMessageRead])
        self.router.add_api_route(
                "/messages",
                self.send_message,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=chat_models.ChatMessageRead)
        self.router.add_api_route(
                "/conversations/{conversation_id}/meeting-requests",
                self.request_meeting,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=chat_models.ChatMessageRead)
        self.router.add_api_route(
                "/meeting-requests/{message_id}/respond",
                self.respond_to_meeting,
                methods=["POST"],
                response_model=chat_models.ChatMessageRead)
        self.router.add_api_route(
                "/bookings",
                self.get_bookings,
                methods=["GET"],
                response_model=list[chat_models.LessonBookingRead])
        self.router.add_api_websocket_route("/ws", self.notifications)

    async def get_conversations(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        chat_service: Annotated[ChatService, Depends(ChatService)]
    ):
        return await chat_service.list_conversations(current_user)

    async def get_messages(
        self,
        conversation_id: UUID,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        chat_service: Annotated[ChatService, Depends(ChatService)]
    ):
        """Oldest first. Opening the conversation marks the counterpart's messages as read."""
        messages = await chat_service.get_messages(conversation_id, current_user)
        return [chat_models.ChatMessageRead.model_validate(m) for m in messages]

    async def send_message(
        self,
        message_data: chat_models.MessageCreate,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        chat_service: Annotated[ChatService, Depends(ChatService)]
    ):
        message = await chat_service.send_message(message_data, current_user)
        return chat_models.ChatMessageRead.model_validate(message)

    async def request_meeting(
        self,
        conversation_id: UUID,
        request: chat_models.MeetingRequestCreate,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        chat_service: Annotated[ChatService, Depends(ChatService)]
    ):
        message = await chat_service.create_meeting_request(conversation_id, request, current_user)
        return chat_models.ChatMessageRead.model_validate(message)

    async def respond_to_meeting(
        self,
        message_id: UUID,
        response: chat_models.MeetingResponse,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        chat_service: Annotated[ChatService, Depends(ChatService)]
    ):
        message = await chat_service.respond_to_meeting(message_id, response, current_user)
        return chat_models.ChatMessageRead.model_validate(message)

    async def get_bookings(
        self,
        current_user: Annotated[db_models.Profiles, Depends(verify_token_and_get_user)],
        chat_service: Annotated[ChatService, Depends(ChatService)]
    ):
        bookings = await chat_service.list_bookings(current_user)
        return [chat_models.LessonBookingRead.model_validate(b) for b in bookings]

    async def notifications(self, websocket: WebSocket, token: Annotated[str, Query()]):
        """
        Pushes {"type": "refetch", "scope": ...} after every committed chat change
        that concerns the connected user. The token is checked once on connect
        with a short-lived session so no connection is held open.
        """
        if db_engine.AsyncSessionLocal is None:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
            return

        async with db_engine.AsyncSessionLocal() as session:
            user = await resolve_user_from_token(token, UserService(session))
        if user is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        await chat_event_manager.connect(websocket, user.id)
        try:
            while True:
                data = await websocket.receive_text()
                if data == "ping":
                    await websocket.send_text("pong")
        except WebSocketDisconnect:
            chat_event_manager.disconnect(websocket, user.id)
        except Exception as e:
            log.error(f"Chat WebSocket error for user {user.id}: {e}")
            chat_event_manager.disconnect(websocket, user.id)


chat_api = ChatAPI()
router = chat_api.router
