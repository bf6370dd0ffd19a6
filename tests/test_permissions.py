"""Authentication, role gates and lister ownership."""
from datetime import timedelta
import uuid

from listingops.core.security import create_access_token


async def test_missing_or_invalid_token_is_401(seed, client):
    response = await client.get("/api/tasks")
    assert response.status_code == 401
    assert response.json()["type"] == "UnauthorizedError"

    response = await client.get("/api/tasks", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


async def test_token_for_unknown_user_is_401(seed, client):
    token = create_access_token(uuid.uuid4())
    response = await client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


async def test_expired_token_is_401(seed, client):
    token = create_access_token(seed.users["superadmin"], expires_delta=timedelta(minutes=-5))
    response = await client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


async def test_wrong_role_is_403(seed, client, headers):
    response = await client.post("/api/tasks", json={}, headers=headers["lister"])

    assert response.status_code == 403
    body = response.json()
    assert body["type"] == "ForbiddenError"
    assert body["details"]["required"] == ["tasks:create"]


async def test_product_admin_cannot_create_assignments(seed, make_task, client, headers):
    task = await make_task()
    payload = {
        "taskId": task["id"],
        "listerId": str(seed.users["lister"]),
        "quantity": 3,
        "listingPlatformId": str(seed.ebay),
        "storeId": str(seed.store_a),
    }

    response = await client.post("/api/assignments", json=payload, headers=headers["productadmin"])

    assert response.status_code == 403


async def test_lister_cannot_report_on_another_listers_assignment(seed, make_assignment, report):
    assignment = await make_assignment(quantity=10, lister="lister")

    response = await report(assignment["id"], seed.r1, 2, as_user="lister2")

    assert response.status_code == 403
    assert response.json()["type"] == "ForbiddenError"


async def test_admins_report_on_behalf_of_listers(seed, make_assignment, report):
    assignment = await make_assignment(quantity=10)

    assert (await report(assignment["id"], seed.r1, 2, as_user="listingadmin")).status_code == 200
    assert (await report(assignment["id"], seed.r2, 2, as_user="superadmin")).status_code == 200


async def test_submit_checks_ownership(seed, make_assignment, client, headers):
    assignment = await make_assignment(quantity=1)

    response = await client.post(f"/api/assignments/{assignment['id']}/submit", headers=headers["lister2"])

    assert response.status_code == 403


async def test_lister_only_sees_own_tasks(seed, make_task, client, headers):
    task = await make_task()

    response = await client.get(f"/api/tasks/{task['id']}", headers=headers["lister"])
    assert response.status_code == 403

    response = await client.get("/api/tasks", headers=headers["lister"])
    assert response.status_code == 200
    assert response.json() == []


async def test_user_management_is_superadmin_only(seed, client, headers):
    payload = {"email": "New.Lister@Example.com", "username": "newlister", "role": "lister"}

    response = await client.post("/api/users", json=payload, headers=headers["listingadmin"])
    assert response.status_code == 403

    response = await client.post("/api/users", json=payload, headers=headers["superadmin"])
    assert response.status_code == 201
    assert response.json()["email"] == "new.lister@example.com"

    response = await client.post("/api/users", json=payload, headers=headers["superadmin"])
    assert response.status_code == 409

    response = await client.get("/api/users", params={"role": "lister"}, headers=headers["superadmin"])
    assert sorted(u["username"] for u in response.json()) == ["lister", "lister2", "newlister"]


async def test_my_assignments(seed, make_assignment, client, headers):
    mine = await make_assignment(quantity=2, lister="lister")
    await make_assignment(quantity=2, lister="lister2")

    response = await client.get("/api/assignments/mine", headers=headers["lister"])

    assert response.status_code == 200
    assert [a["id"] for a in response.json()] == [mine["id"]]

    response = await client.get("/api/assignments/mine", headers=headers["productadmin"])
    assert response.status_code == 403


async def test_my_assignments_by_status(seed, make_assignment, report, client, headers):
    done = await make_assignment(quantity=2)
    open_today = await make_assignment(quantity=2)
    carried_over = await make_assignment(quantity=2, scheduledDate="2020-01-15T06:00:00Z")
    await make_assignment(quantity=2, scheduledDate="2099-01-15T06:00:00Z")
    await report(done["id"], seed.r1, 2)

    response = await client.get("/api/assignments/mine/with-status", headers=headers["lister"])

    assert response.status_code == 200
    body = response.json()
    assert [a["id"] for a in body["completedTasks"]] == [done["id"]]
    assert [a["id"] for a in body["todaysTasks"]] == [open_today["id"]]
    assert [a["id"] for a in body["pendingTasks"]] == [carried_over["id"]]
