import base64
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response

from ..permissions import ANY_MEMBER, EDITORS, BoardAccess, require_board_role
from ..schemas import (
    AttachmentIn,
    CardIn,
    CardPatch,
    CardReorder,
    CommentIn,
    activity_out,
    card_out,
    comment_out,
)
from ..storage import Storage, get_storage

router = APIRouter(prefix="/boards/{board_id}/cards", tags=["cards"])


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the UTF-8 name in ``filename*``."""
    fallback = "".join(ch if 32 <= ord(ch) < 127 and ch not in "\"\\" else "_" for ch in filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


@router.get("", response_model=dict)
def get_cards(
    access: BoardAccess = Depends(require_board_role(ANY_MEMBER)),
    storage: Storage = Depends(get_storage),
):
    return {"cards": [card_out(card) for card in storage.list_cards(access.board_id)]}


@router.post("", response_model=dict, status_code=201)
def create_card(
    payload: CardIn,
    access: BoardAccess = Depends(require_board_role(EDITORS)),
    storage: Storage = Depends(get_storage),
):
    card = storage.create_card(
        access.board_id,
        access.user_id,
        payload.listId,
        payload.title,
        payload.description,
        payload.dueDate,
        payload.labels,
    )
    return {"card": card_out(card)}


@router.post("/reorder", response_model=dict)
def reorder_cards(
    payload: CardReorder,
    access: BoardAccess = Depends(require_board_role(EDITORS)),
    storage: Storage = Depends(get_storage),
):
    cards = storage.reorder_cards(access.board_id, payload.listId, payload.cardIds)
    return {"cards": [card_out(card) for card in cards]}


@router.get("/{card_id}", response_model=dict)
def get_card(
    card_id: str,
    access: BoardAccess = Depends(require_board_role(ANY_MEMBER)),
    storage: Storage = Depends(get_storage),
):
    card = storage.get_card(access.board_id, card_id)
    return {
        "card": card_out(card),
        "comments": [comment_out(c) for c in storage.comments_for(card)],
        "activities": [activity_out(a) for a in storage.activity.for_card(card.id)],
    }


@router.patch("/{card_id}", response_model=dict)
def update_card(
    card_id: str,
    payload: CardPatch,
    access: BoardAccess = Depends(require_board_role(EDITORS)),
    storage: Storage = Depends(get_storage),
):
    card = storage.get_card(access.board_id, card_id)
    card = storage.update_card(access.board_id, card, access.user_id, payload.model_dump(exclude_unset=True))
    return {"card": card_out(card)}


@router.delete("/{card_id}", response_model=dict)
def delete_card(
    card_id: str,
    access: BoardAccess = Depends(require_board_role(EDITORS)),
    storage: Storage = Depends(get_storage),
):
    storage.delete_card(storage.get_card(access.board_id, card_id))
    return {"message": "Card deleted"}


# === Comments & attachments ===


@router.post("/{card_id}/comments", response_model=dict, status_code=201)
def add_comment(
    card_id: str,
    payload: CommentIn,
    access: BoardAccess = Depends(require_board_role(ANY_MEMBER)),
    storage: Storage = Depends(get_storage),
):
    card = storage.get_card(access.board_id, card_id)
    comment = storage.add_comment(card, access.user_id, payload.text)
    return {"comment": comment_out(comment)}


@router.post("/{card_id}/attachments", response_model=dict)
def add_attachment(
    card_id: str,
    payload: AttachmentIn,
    access: BoardAccess = Depends(require_board_role(EDITORS)),
    storage: Storage = Depends(get_storage),
):
    card = storage.get_card(access.board_id, card_id)
    card = storage.add_attachment(card, payload.name, payload.mimeType, payload.size, payload.data)
    return {"card": card_out(card)}


@router.get("/{card_id}/attachments/{index}")
def download_attachment(
    card_id: str,
    index: int,
    access: BoardAccess = Depends(require_board_role(ANY_MEMBER)),
    storage: Storage = Depends(get_storage),
):
    card = storage.get_card(access.board_id, card_id)
    attachment = storage.get_attachment(card, index)
    return Response(
        content=base64.b64decode(attachment["data"]),
        media_type=attachment["mimeType"],
        headers={"Content-Disposition": content_disposition(attachment["name"])},
    )
