'''
Conversation and unread-state rules. Viewing a conversation is what marks
the counterpart's messages as read; read_at only ever moves from NULL to a
timestamp.
'''
import datetime
from typing import Iterable, Optional
from uuid import UUID


def is_unread_for(message, viewer_id: UUID) -> bool:
    return message.sender_id != viewer_id and message.read_at is None


def unread_count(messages: Iterable, viewer_id: UUID) -> int:
    return sum(1 for message in messages if is_unread_for(message, viewer_id))


def messages_to_mark_read(messages: Iterable, viewer_id: UUID) -> list:
    return [message for message in messages if is_unread_for(message, viewer_id)]


def mark_read(messages: Iterable, viewer_id: UUID, now: datetime.datetime) -> int:
    """Stamps read_at on the viewer's unread messages. Returns how many changed."""
    changed = 0
    for message in messages_to_mark_read(messages, viewer_id):
        message.read_at = now
        changed += 1
    return changed


def order_messages(messages: Iterable) -> list:
    # id breaks ties between messages inserted within the same clock tick
    return sorted(messages, key=lambda m: (_as_utc(m.created_at), str(m.id)))


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    # Some drivers hand back naive timestamps for timezone-aware columns
    return value.replace(tzinfo=datetime.timezone.utc) if value.tzinfo is None else value


def order_conversations(conversations: Iterable) -> list:
    """Most recently active first."""
    return sorted(conversations, key=lambda c: _as_utc(c.updated_at), reverse=True)


def last_message(messages: Iterable) -> Optional[object]:
    ordered = order_messages(messages)
    return ordered[-1] if ordered else None


def counterpart_id(conversation, viewer_id: UUID) -> UUID:
    if viewer_id == conversation.student_id:
        return conversation.teacher_id
    if viewer_id == conversation.teacher_id:
        return conversation.student_id
    raise ValueError(f"User {viewer_id} is not a participant of conversation {conversation.id}.")


def is_participant(conversation, user_id: UUID) -> bool:
    return user_id in (conversation.student_id, conversation.teacher_id)


def touch(conversation, now: datetime.datetime) -> None:
    """Bumps the conversation's sort key. Never moves it backwards."""
    current = conversation.updated_at
    if current is None or _as_utc(now) > _as_utc(current):
        conversation.updated_at = now
