from fastapi import APIRouter, Depends

from ..permissions import ANY_MEMBER, EDITORS, BoardAccess, require_board_role
from ..schemas import ListIn, ListPatch, ListReorder, list_out
from ..storage import Storage, get_storage

router = APIRouter(prefix="/boards/{board_id}/lists", tags=["lists"])


@router.get("", response_model=dict)
def get_lists(
    access: BoardAccess = Depends(require_board_role(ANY_MEMBER)),
    storage: Storage = Depends(get_storage),
):
    return {"lists": [list_out(item) for item in storage.get_lists(access.board_id)]}


@router.post("", response_model=dict, status_code=201)
def create_list(
    payload: ListIn,
    access: BoardAccess = Depends(require_board_role(EDITORS)),
    storage: Storage = Depends(get_storage),
):
    board_list = storage.create_list(access.board_id, payload.title)
    return {"list": list_out(board_list)}


@router.post("/reorder", response_model=dict)
def reorder_lists(
    payload: ListReorder,
    access: BoardAccess = Depends(require_board_role(EDITORS)),
    storage: Storage = Depends(get_storage),
):
    lists = storage.reorder_lists(access.board_id, payload.listIds)
    return {"lists": [list_out(item) for item in lists]}


@router.patch("/{list_id}", response_model=dict)
def update_list(
    list_id: str,
    payload: ListPatch,
    access: BoardAccess = Depends(require_board_role(EDITORS)),
    storage: Storage = Depends(get_storage),
):
    board_list = storage.get_list(access.board_id, list_id)
    board_list = storage.update_list(board_list, payload.title, payload.order)
    return {"list": list_out(board_list)}


@router.delete("/{list_id}", response_model=dict)
def delete_list(
    list_id: str,
    access: BoardAccess = Depends(require_board_role(EDITORS)),
    storage: Storage = Depends(get_storage),
):
    storage.delete_list(storage.get_list(access.board_id, list_id))
    return {"message": "List deleted"}
