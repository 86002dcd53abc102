from fastapi import APIRouter, Depends

from ..permissions import ADMINS, ANY_MEMBER, BoardAccess, require_board_role
from ..schemas import MemberInvite, MemberPatch, member_out
from ..storage import Storage, get_storage

router = APIRouter(prefix="/boards/{board_id}/members", tags=["members"])


@router.get("", response_model=dict)
def get_members(
    access: BoardAccess = Depends(require_board_role(ANY_MEMBER)),
    storage: Storage = Depends(get_storage),
):
    return {"members": [member_out(m) for m in storage.list_members(access.board_id)]}


@router.post("/invite", response_model=dict, status_code=201)
def invite_member(
    payload: MemberInvite,
    access: BoardAccess = Depends(require_board_role(ADMINS)),
    storage: Storage = Depends(get_storage),
):
    member = storage.invite_member(access.board_id, access.user_id, payload.email, payload.role)
    return {"member": member_out(member)}


@router.post("/leave", response_model=dict)
def leave_board(
    access: BoardAccess = Depends(require_board_role(ANY_MEMBER)),
    storage: Storage = Depends(get_storage),
):
    storage.leave_board(access.board_id, access.user_id)
    return {"message": "Left board"}


@router.patch("/{member_id}", response_model=dict)
def update_member(
    member_id: str,
    payload: MemberPatch,
    access: BoardAccess = Depends(require_board_role(ADMINS)),
    storage: Storage = Depends(get_storage),
):
    member = storage.update_member_role(access.board_id, member_id, payload.role)
    return {"member": member_out(member)}


@router.delete("/{member_id}", response_model=dict)
def remove_member(
    member_id: str,
    access: BoardAccess = Depends(require_board_role(ADMINS)),
    storage: Storage = Depends(get_storage),
):
    storage.remove_member(access.board_id, member_id, access.user_id)
    return {"message": "Member removed"}
