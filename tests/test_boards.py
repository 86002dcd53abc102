from sqlalchemy import func, select

from taskboard.db import Activity, Board, BoardList, BoardMember, Card, Comment


def count(session, model):
    return session.scalar(select(func.count()).select_from(model))


def test_creator_gets_exactly_one_admin_membership(client, db_session, register, board_factory):
    headers, owner = register("Alice", "alice@example.com")
    board = board_factory(headers, "Sprint")
    assert board["role"] == "admin"
    assert board["createdBy"] == owner["id"]

    rows = db_session.scalars(select(BoardMember).where(BoardMember.board_id == board["id"])).all()
    assert [(row.user_id, row.role) for row in rows] == [(owner["id"], "admin")]


def test_list_boards_includes_role(client, register, board_factory, invite):
    alice, _ = register("Alice", "alice@example.com")
    bob, _ = register("Bob", "bob@example.com")
    own = board_factory(bob, "Bob's")
    shared = board_factory(alice, "Shared")
    invite(alice, shared["id"], "bob@example.com", "viewer")

    boards = client.get("/api/boards", headers=bob).json()["boards"]
    assert [(b["name"], b["role"]) for b in boards] == [("Shared", "viewer"), ("Bob's", "admin")]
    assert {b["id"] for b in boards} == {own["id"], shared["id"]}


def test_get_and_rename_board(client, register, board_factory):
    headers, _ = register("Alice", "alice@example.com")
    board = board_factory(headers, "Sprint")
    resp = client.patch(f"/api/boards/{board['id']}", json={"name": "  Sprint 2 "}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["board"]["name"] == "Sprint 2"
    fetched = client.get(f"/api/boards/{board['id']}", headers=headers).json()["board"]
    assert fetched["name"] == "Sprint 2"
    assert fetched["role"] == "admin"


def test_create_board_requires_name(client, register):
    headers, _ = register("Alice", "alice@example.com")
    resp = client.post("/api/boards", json={"name": "   "}, headers=headers)
    assert resp.status_code == 400


def test_delete_board_cascades_to_members_lists_and_cards(
    client, db_session, register, board_factory, list_factory, card_factory, invite
):
    headers, _ = register("Alice", "alice@example.com")
    register("Bob", "bob@example.com")
    board = board_factory(headers)
    keep = board_factory(headers, "Keep")
    invite(headers, board["id"], "bob@example.com", "editor")
    todo = list_factory(headers, board["id"], "Todo")
    card = card_factory(headers, board["id"], todo["id"], "Fix bug")
    client.post(f"/api/boards/{board['id']}/cards/{card['id']}/comments", json={"text": "hi"}, headers=headers)
    keep_list = list_factory(headers, keep["id"], "Todo")
    card_factory(headers, keep["id"], keep_list["id"], "Survivor")

    resp = client.delete(f"/api/boards/{board['id']}", headers=headers)
    assert resp.status_code == 200

    assert count(db_session, Board) == 1
    assert count(db_session, BoardMember) == 1
    assert count(db_session, BoardList) == 1
    # No orphaned cards, comments or activity are left behind.
    assert db_session.scalars(select(Card.title)).all() == ["Survivor"]
    assert count(db_session, Comment) == 0
    assert {a.card_id for a in db_session.scalars(select(Activity))} == {
        db_session.scalar(select(Card.id))
    }


def test_timestamps_are_reported_in_utc(client, register, board_factory):
    headers, _ = register("Alice", "alice@example.com")
    board = board_factory(headers)
    fetched = client.get(f"/api/boards/{board['id']}", headers=headers).json()["board"]
    for value in (fetched["createdAt"], fetched["updatedAt"]):
        assert value.endswith("Z") or value.endswith("+00:00")
