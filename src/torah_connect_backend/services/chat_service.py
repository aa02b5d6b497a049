'''
Conversations, messages and meeting requests between a student and a teacher.
'''
from typing import Annotated
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core import messaging
from ..core.approval import is_publicly_listed
from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import UserRole, MessageType, BookingStatus
from ..database.models import utcnow
from ..common.logger import log
from ..models import chat as chat_models
from .realtime import queue_refetch, conversation_scope, CONVERSATIONS_SCOPE


def _display_name(profile: db_models.Profiles) -> str:
    return " ".join(filter(None, [profile.first_name, profile.last_name])) or profile.email


def _meeting_request_text(request: chat_models.MeetingRequestCreate) -> str:
    lines = [
        "Meeting Request:",
        "",
        f"Date: {request.lesson_date.isoformat()}",
        f"Time: {request.lesson_time.strftime('%H:%M')}",
        f"Duration: {request.duration_minutes} minutes",
    ]
    if request.subject:
        lines.append(f"Subject: {request.subject}")
    if request.notes:
        lines.extend(["", f"Notes: {request.notes}"])
    return "\n".join(lines)


class ChatService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    # --- Helpers ---

    async def _get_conversation(self, conversation_id: UUID, current_user: db_models.Profiles) -> db_models.Conversations:
        stmt = select(db_models.Conversations).options(
            selectinload(db_models.Conversations.messages),
            selectinload(db_models.Conversations.student),
            selectinload(db_models.Conversations.teacher)
        ).filter(db_models.Conversations.id == conversation_id)
        conversation = (await self.db.execute(stmt)).scalars().first()
        if not conversation:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found.")
        if not messaging.is_participant(conversation, current_user.id):
            log.warning(f"SECURITY: User {current_user.id} tried to access conversation {conversation_id}.")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not a participant of this conversation."
            )
        return conversation

    async def _get_or_create_conversation(self, student_id: UUID, teacher_id: UUID) -> db_models.Conversations:
        stmt = select(db_models.Conversations).filter(
            db_models.Conversations.student_id == student_id,
            db_models.Conversations.teacher_id == teacher_id
        )
        conversation = (await self.db.execute(stmt)).scalars().first()
        if conversation:
            return conversation

        conversation = db_models.Conversations(student_id=student_id, teacher_id=teacher_id)
        self.db.add(conversation)
        try:
            await self.db.flush()
        except IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="The conversation was created concurrently; please retry."
            )
        log.info(f"Created conversation {conversation.id} between student {student_id} and teacher {teacher_id}.")
        return conversation

    def _add_message(self, conversation: db_models.Conversations, sender: db_models.Profiles, content: str,
                     message_type: MessageType, meeting_data: dict | None = None) -> db_models.ChatMessages:
        now = utcnow()
        message = db_models.ChatMessages(
            conversation=conversation,
            sender_id=sender.id,
            content=content,
            message_type=message_type.value,
            meeting_data=meeting_data,
            created_at=now,
        )
        self.db.add(message)
        messaging.touch(conversation, now)
        queue_refetch(
            self.db,
            [conversation.student_id, conversation.teacher_id],
            [CONVERSATIONS_SCOPE, conversation_scope(conversation.id)]
        )
        return message

    # --- Conversations ---

    async def list_conversations(self, current_user: db_models.Profiles) -> list[chat_models.ConversationRead]:
        """The viewer's conversations, most recently active first."""
        log.info(f"Listing conversations for user {current_user.id}.")
        stmt = select(db_models.Conversations).options(
            selectinload(db_models.Conversations.messages),
            selectinload(db_models.Conversations.student),
            selectinload(db_models.Conversations.teacher)
        ).filter(or_(
            db_models.Conversations.student_id == current_user.id,
            db_models.Conversations.teacher_id == current_user.id
        ))
        conversations = (await self.db.execute(stmt)).scalars().all()

        listed = []
        for conversation in messaging.order_conversations(conversations):
            counterpart = conversation.teacher if current_user.id == conversation.student_id else conversation.student
            last = messaging.last_message(conversation.messages)
            listed.append(chat_models.ConversationRead(
                id=conversation.id,
                student_id=conversation.student_id,
                teacher_id=conversation.teacher_id,
                counterpart_id=counterpart.id,
                counterpart_name=_display_name(counterpart),
                updated_at=conversation.updated_at,
                unread_count=messaging.unread_count(conversation.messages, current_user.id),
                last_message=chat_models.ChatMessageRead.model_validate(last) if last else None,
            ))
        return listed

    async def get_messages(self, conversation_id: UUID, current_user: db_models.Profiles) -> list[db_models.ChatMessages]:
        """
        Returns the conversation's messages oldest first. Reading them marks the
        counterpart's unread messages as read.
        """
        conversation = await self._get_conversation(conversation_id, current_user)
        changed = messaging.mark_read(conversation.messages, current_user.id, utcnow())
        if changed:
            await self.db.flush()
            queue_refetch(
                self.db,
                [messaging.counterpart_id(conversation, current_user.id)],
                [conversation_scope(conversation.id)]
            )
            log.info(f"User {current_user.id} read {changed} messages in conversation {conversation.id}.")
        return messaging.order_messages(conversation.messages)

    # --- Messages ---

    async def send_message(self, message_data: chat_models.MessageCreate, current_user: db_models.Profiles) -> db_models.ChatMessages:
        """
        Sends a text message to a counterpart, creating the conversation on first contact.
        Conversations always pair one student with one teacher.
        """
        log.info(f"User {current_user.id} sending a message to {message_data.recipient_id}.")
        recipient = await self.db.get(db_models.Profiles, message_data.recipient_id)
        if not recipient or not recipient.is_active:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found.")

        roles = {current_user.role, recipient.role}
        if roles != {UserRole.STUDENT.value, UserRole.TEACHER.value}:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Conversations are between one student and one teacher."
            )

        if current_user.role == UserRole.STUDENT.value:
            student_id, teacher_id = current_user.id, recipient.id
        else:
            student_id, teacher_id = recipient.id, current_user.id

        conversation = await self._get_or_create_conversation(student_id, teacher_id)
        message = self._add_message(conversation, current_user, message_data.content, MessageType.TEXT)
        await self.db.flush()
        return message

    async def create_meeting_request(
        self,
        conversation_id: UUID,
        request: chat_models.MeetingRequestCreate,
        current_user: db_models.Profiles
    ) -> db_models.ChatMessages:
        """
        Books a live lesson with the conversation's teacher and posts it as a
        meeting_request message.
        """
        conversation = await self._get_conversation(conversation_id, current_user)
        if not is_publicly_listed(conversation.teacher):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only approved teachers can host live sessions."
            )

        booking = db_models.LessonBookings(
            student_id=conversation.student_id,
            teacher_id=conversation.teacher_id,
            conversation_id=conversation.id,
            lesson_date=request.lesson_date,
            lesson_time=request.lesson_time,
            duration_minutes=request.duration_minutes,
            subject=request.subject,
            notes=request.notes,
            status=BookingStatus.SCHEDULED.value,
        )
        self.db.add(booking)
        await self.db.flush()

        meeting_data = {
            "booking_id": str(booking.id),
            "date": request.lesson_date.isoformat(),
            "time": request.lesson_time.strftime('%H:%M'),
            "duration": request.duration_minutes,
            "subject": request.subject,
            "notes": request.notes,
        }
        message = self._add_message(
            conversation, current_user, _meeting_request_text(request), MessageType.MEETING_REQUEST, meeting_data
        )
        await self.db.flush()
        log.info(f"User {current_user.id} requested meeting {booking.id} in conversation {conversation.id}.")
        return message

    async def respond_to_meeting(
        self,
        message_id: UUID,
        response: chat_models.MeetingResponse,
        current_user: db_models.Profiles
    ) -> db_models.ChatMessages:
        """
        The counterpart of a meeting request accepts or declines it.
        Declining cancels the booking; either answer is posted as a meeting_response.
        """
        request_message = await self.db.get(db_models.ChatMessages, message_id)
        if not request_message or request_message.message_type != MessageType.MEETING_REQUEST.value:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meeting request not found.")

        conversation = await self._get_conversation(request_message.conversation_id, current_user)
        if request_message.sender_id == current_user.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot respond to your own meeting request."
            )

        meeting_data = dict(request_message.meeting_data or {})
        if "response" in meeting_data:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This meeting request was already answered.")

        booking = await self.db.get(db_models.LessonBookings, UUID(meeting_data["booking_id"]))
        if not booking:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found.")

        answer = "accepted" if response.accept else "declined"
        if not response.accept:
            booking.status = BookingStatus.DECLINED.value

        # Reassign so the JSON column is flagged as modified
        meeting_data["response"] = answer
        request_message.meeting_data = meeting_data

        content = f"Meeting {answer}."
        if response.note:
            content = f"{content}\n\n{response.note}"
        reply = self._add_message(
            conversation, current_user, content, MessageType.MEETING_RESPONSE,
            {"booking_id": str(booking.id), "request_message_id": str(request_message.id), "response": answer}
        )
        await self.db.flush()
        log.info(f"User {current_user.id} {answer} meeting {booking.id}.")
        return reply

    async def list_bookings(self, current_user: db_models.Profiles) -> list[db_models.LessonBookings]:
        stmt = select(db_models.LessonBookings).filter(or_(
            db_models.LessonBookings.student_id == current_user.id,
            db_models.LessonBookings.teacher_id == current_user.id
        )).order_by(db_models.LessonBookings.lesson_date, db_models.LessonBookings.lesson_time)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
