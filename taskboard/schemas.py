from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from .db import Activity, Board, BoardList, BoardMember, Card, Comment, User
from .permissions import Role
from .utils import to_utc

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=140)]


def _clean_labels(labels: Optional[list[str]]) -> Optional[list[str]]:
    if labels is None:
        return None
    seen: list[str] = []
    for label in labels:
        label = label.strip()
        if label and label not in seen:
            seen.append(label)
    return seen


# === Auth ===


class UserSummary(BaseModel):
    id: str
    name: str
    email: str


class RegisterIn(BaseModel):
    name: Name
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AuthOut(BaseModel):
    token: str
    user: UserSummary


# === Boards ===


class BoardIn(BaseModel):
    name: Name


class BoardPatch(BaseModel):
    name: Optional[Name] = None


class BoardOut(BaseModel):
    id: str
    name: str
    createdBy: str
    createdAt: datetime
    updatedAt: datetime
    role: Optional[str] = None


# === Lists ===


class ListIn(BaseModel):
    title: Name


class ListPatch(BaseModel):
    title: Optional[Name] = None
    order: Optional[int] = Field(default=None, ge=0)


class ListReorder(BaseModel):
    listIds: list[str]


class ListOut(BaseModel):
    id: str
    boardId: str
    title: str
    order: int
    createdAt: datetime
    updatedAt: datetime


# === Cards ===


class CardIn(BaseModel):
    listId: str = Field(min_length=1)
    title: Title
    description: Optional[str] = Field(default=None, max_length=8000)
    dueDate: Optional[datetime] = None
    labels: list[str] = Field(default_factory=list)

    @field_validator("labels")
    @classmethod
    def clean_labels(cls, value: list[str]) -> list[str]:
        return _clean_labels(value) or []


class CardPatch(BaseModel):
    title: Optional[Title] = None
    description: Optional[str] = Field(default=None, max_length=8000)
    dueDate: Optional[datetime] = None
    labels: Optional[list[str]] = None
    listId: Optional[str] = Field(default=None, min_length=1)
    order: Optional[int] = Field(default=None, ge=0)

    @field_validator("labels")
    @classmethod
    def clean_labels(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return _clean_labels(value)


class CardReorder(BaseModel):
    listId: str = Field(min_length=1)
    cardIds: list[str]


class AttachmentIn(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    mimeType: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    size: int = Field(ge=0)
    data: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class AttachmentOut(BaseModel):
    name: str
    mimeType: str
    size: int
    data: str
    uploadedAt: datetime


class CardOut(BaseModel):
    id: str
    boardId: str
    listId: str
    title: str
    description: str
    order: int
    dueDate: Optional[datetime]
    labels: list[str]
    attachments: list[AttachmentOut]
    createdBy: UserSummary
    createdAt: datetime
    updatedAt: datetime


class CommentIn(BaseModel):
    text: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=4000)]


class CommentOut(BaseModel):
    id: str
    cardId: str
    user: UserSummary
    text: str
    createdAt: datetime


class ActivityOut(BaseModel):
    id: str
    cardId: str
    user: UserSummary
    action: str
    details: Optional[str]
    createdAt: datetime


# === Members ===


class MemberInvite(BaseModel):
    email: EmailStr
    role: Role


class MemberPatch(BaseModel):
    role: Role


class MemberOut(BaseModel):
    id: str
    boardId: str
    user: UserSummary
    role: str
    invitedBy: Optional[UserSummary]
    createdAt: datetime


class UploadOut(BaseModel):
    name: str
    mimeType: str
    size: int
    data: str


# === Presenters ===


def user_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, name=user.name, email=user.email)


def board_out(board: Board, role: Optional[str] = None) -> BoardOut:
    return BoardOut(
        id=board.id,
        name=board.name,
        createdBy=board.created_by,
        createdAt=to_utc(board.created_at),
        updatedAt=to_utc(board.updated_at),
        role=role,
    )


def list_out(board_list: BoardList) -> ListOut:
    return ListOut(
        id=board_list.id,
        boardId=board_list.board_id,
        title=board_list.title,
        order=board_list.order,
        createdAt=to_utc(board_list.created_at),
        updatedAt=to_utc(board_list.updated_at),
    )


def card_out(card: Card) -> CardOut:
    return CardOut(
        id=card.id,
        boardId=card.board_list.board_id,
        listId=card.list_id,
        title=card.title,
        description=card.description or "",
        order=card.order,
        dueDate=to_utc(card.due_date),
        labels=list(card.labels),
        attachments=[AttachmentOut(**attachment) for attachment in card.attachments or []],
        createdBy=user_summary(card.creator),
        createdAt=to_utc(card.created_at),
        updatedAt=to_utc(card.updated_at),
    )


def comment_out(comment: Comment) -> CommentOut:
    return CommentOut(
        id=comment.id,
        cardId=comment.card_id,
        user=user_summary(comment.user),
        text=comment.text,
        createdAt=to_utc(comment.created_at),
    )


def activity_out(activity: Activity) -> ActivityOut:
    return ActivityOut(
        id=activity.id,
        cardId=activity.card_id,
        user=user_summary(activity.user),
        action=activity.action,
        details=activity.details,
        createdAt=to_utc(activity.created_at),
    )


def member_out(member: BoardMember) -> MemberOut:
    return MemberOut(
        id=member.id,
        boardId=member.board_id,
        user=user_summary(member.user),
        role=member.role,
        invitedBy=user_summary(member.inviter) if member.inviter else None,
        createdAt=to_utc(member.created_at),
    )
