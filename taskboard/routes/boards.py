from fastapi import APIRouter, Depends

from ..auth import get_current_user
from ..permissions import ADMINS, ANY_MEMBER, BoardAccess, Role, require_board_role
from ..schemas import BoardIn, BoardPatch, board_out
from ..storage import Storage, get_storage

router = APIRouter(prefix="/boards", tags=["boards"])


@router.get("", response_model=dict)
def list_boards(user: str = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    boards = [board_out(board, role) for board, role in storage.list_boards_for_user(user)]
    return {"boards": boards}


@router.post("", response_model=dict, status_code=201)
def create_board(
    payload: BoardIn,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    board = storage.create_board(user, payload.name)
    return {"board": board_out(board, Role.ADMIN.value)}


@router.get("/{board_id}", response_model=dict)
def get_board(
    access: BoardAccess = Depends(require_board_role(ANY_MEMBER)),
    storage: Storage = Depends(get_storage),
):
    board = storage.get_board(access.board_id)
    return {"board": board_out(board, access.role.value)}


@router.patch("/{board_id}", response_model=dict)
def update_board(
    payload: BoardPatch,
    access: BoardAccess = Depends(require_board_role(ADMINS)),
    storage: Storage = Depends(get_storage),
):
    board = storage.update_board(storage.get_board(access.board_id), payload.name)
    return {"board": board_out(board, access.role.value)}


@router.delete("/{board_id}", response_model=dict)
def delete_board(
    access: BoardAccess = Depends(require_board_role(ADMINS)),
    storage: Storage = Depends(get_storage),
):
    storage.delete_board(storage.get_board(access.board_id))
    return {"message": "Board deleted"}
