"""Compatibility follow-up work on completed motors listings."""
import uuid


async def _assign(client, headers, seed, source_id, ranges, editor="editor"):
    return await client.post(
        "/api/compatibility/assign",
        json={
            "sourceAssignmentId": source_id,
            "editorId": str(seed.users[editor]),
            "rangeQuantities": [{"rangeId": str(r), "quantity": q} for r, q in ranges],
            "notes": "Fitment for 2015-2020 models",
        },
        headers=headers["compatadmin"],
    )


async def test_eligible_lists_completed_motors_assignments(
    seed, make_task, make_assignment, report, client, headers
):
    done = await make_assignment(quantity=3)
    await make_assignment(quantity=3)
    home_done = await make_assignment(quantity=1, task=await make_task(category="home"))
    await report(done["id"], seed.r1, 3)
    await report(home_done["id"], seed.h1, 1)

    response = await client.get("/api/compatibility/eligible", headers=headers["compatadmin"])

    assert response.status_code == 200
    assert [a["id"] for a in response.json()] == [done["id"]]


async def test_assign_and_edit_flow(seed, make_assignment, report, client, headers):
    source = await make_assignment(quantity=6)
    await report(source["id"], seed.r1, 4)
    await report(source["id"], seed.r2, 2)

    response = await _assign(client, headers, seed, source["id"], [(seed.r1, 4), (seed.r2, 2)])
    assert response.status_code == 201, response.text
    item = response.json()
    assert item["quantity"] == 6
    assert item["completedQuantity"] == 0
    assert [r["range"]["name"] for r in item["assignedRanges"]] == ["R1", "R2"]
    assert item["sourceAssignment"]["store"]["name"] == "Store A"

    mine = (await client.get("/api/compatibility/mine", headers=headers["editor"])).json()
    assert [m["id"] for m in mine] == [item["id"]]
    assert (await client.get("/api/compatibility/mine", headers=headers["editor2"])).json() == []

    url = f"/api/compatibility/{item['id']}/complete-range"
    body = (await client.post(url, json={"rangeId": str(seed.r1), "quantity": 4}, headers=headers["editor"])).json()
    assert body["completedQuantity"] == 4
    assert body["completedAt"] is None

    body = (await client.post(url, json={"rangeId": str(seed.r2), "quantity": 2}, headers=headers["editor"])).json()
    assert body["completedQuantity"] == 6
    assert body["completedAt"] is not None

    body = (await client.post(url, json={"rangeId": str(seed.r2), "quantity": 0}, headers=headers["editor"])).json()
    assert [r["rangeId"] for r in body["completedRanges"]] == [str(seed.r1)]
    assert body["completedQuantity"] == 4
    assert body["completedAt"] is None

    progress = (await client.get("/api/compatibility/progress", headers=headers["compatadmin"])).json()
    assert progress[0]["completedQuantity"] == 4


async def test_only_the_assigned_editor_reports(seed, make_assignment, report, client, headers):
    source = await make_assignment(quantity=2)
    await report(source["id"], seed.r1, 2)
    item = (await _assign(client, headers, seed, source["id"], [(seed.r1, 2)])).json()
    url = f"/api/compatibility/{item['id']}/complete-range"
    payload = {"rangeId": str(seed.r1), "quantity": 1}

    assert (await client.post(url, json=payload, headers=headers["editor2"])).status_code == 403
    assert (await client.post(url, json=payload, headers=headers["lister"])).status_code == 403
    assert (await client.post(url, json=payload, headers=headers["superadmin"])).status_code == 200


async def test_assign_validation(seed, make_assignment, report, client, headers):
    source = await make_assignment(quantity=2)
    await report(source["id"], seed.r1, 2)

    response = await client.post(
        "/api/compatibility/assign",
        json={
            "sourceAssignmentId": source["id"],
            "editorId": str(seed.users["lister"]),
            "rangeQuantities": [{"rangeId": str(seed.r1), "quantity": 1}],
        },
        headers=headers["compatadmin"],
    )
    assert response.status_code == 400

    response = await _assign(client, headers, seed, source["id"], [(seed.r1, 1), (seed.r1, 1)])
    assert response.status_code == 400

    response = await _assign(client, headers, seed, source["id"], [(seed.h1, 1)])
    assert response.status_code == 400

    response = await _assign(client, headers, seed, source["id"], [])
    assert response.status_code == 400

    response = await _assign(client, headers, seed, str(uuid.uuid4()), [(seed.r1, 1)])
    assert response.status_code == 404


async def test_progress_visibility(seed, make_assignment, report, client, headers):
    source = await make_assignment(quantity=2)
    await report(source["id"], seed.r1, 2)
    await _assign(client, headers, seed, source["id"], [(seed.r1, 2)])

    everything = (await client.get("/api/compatibility/progress", headers=headers["superadmin"])).json()
    own = (await client.get("/api/compatibility/progress", headers=headers["compatadmin"])).json()
    assert len(everything) == 1
    assert [i["id"] for i in own] == [everything[0]["id"]]
    assert own[0]["admin"]["username"] == "compatadmin"

    response = await client.get("/api/compatibility/progress", headers=headers["editor"])
    assert response.status_code == 403
