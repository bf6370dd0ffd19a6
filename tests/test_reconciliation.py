"""Range distribution, completion bookkeeping and the listing completion mirror."""
import uuid


async def _state(client, headers, assignment):
    """Current assignment record and its listing completions, as an admin sees them."""
    listed = (
        await client.get("/api/assignments", params={"taskId": assignment["taskId"]}, headers=headers["listingadmin"])
    ).json()
    current = next(a for a in listed if a["id"] == assignment["id"])
    completions = (await client.get("/api/listing-completions", headers=headers["listingadmin"])).json()
    return current, [c for c in completions if c["assignmentId"] == assignment["id"]]


async def test_distribution_completes_and_reopens(seed, make_assignment, report, client, headers):
    assignment = await make_assignment(quantity=10)

    response = await report(assignment["id"], seed.r1, 4)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["completedQuantity"] == 4
    assert body["distributedTotal"] == 4
    assert body["completedAt"] is None

    body = (await report(assignment["id"], seed.r2, 6)).json()
    assert body["completedQuantity"] == 10
    assert body["completedAt"] is not None

    body = (await report(assignment["id"], seed.r1, 0)).json()
    assert [rq["rangeId"] for rq in body["rangeQuantities"]] == [str(seed.r2)]
    assert body["completedQuantity"] == 6
    assert body["completedAt"] is None

    completions = (await client.get("/api/listing-completions", headers=headers["listingadmin"])).json()
    assert len(completions) == 1
    assert completions[0]["assignmentId"] == assignment["id"]
    assert completions[0]["totalQuantity"] == 6
    assert [rc["rangeId"] for rc in completions[0]["rangeCompletions"]] == [str(seed.r2)]


async def test_report_overwrites_existing_range(seed, make_assignment, report):
    assignment = await make_assignment(quantity=10)

    await report(assignment["id"], seed.r1, 3)
    body = (await report(assignment["id"], seed.r1, 5)).json()

    assert len(body["rangeQuantities"]) == 1
    assert body["rangeQuantities"][0]["quantity"] == 5
    assert body["rangeQuantities"][0]["range"]["name"] == "R1"
    assert body["completedQuantity"] == 5


async def test_range_order_follows_first_report(seed, make_assignment, report):
    assignment = await make_assignment(quantity=10)

    await report(assignment["id"], seed.r3, 1)
    await report(assignment["id"], seed.r1, 1)
    body = (await report(assignment["id"], seed.r3, 2)).json()

    assert [rq["rangeId"] for rq in body["rangeQuantities"]] == [str(seed.r3), str(seed.r1)]


async def test_over_distribution_clamps_completed_quantity(seed, make_assignment, report):
    assignment = await make_assignment(quantity=10)

    await report(assignment["id"], seed.r1, 7)
    body = (await report(assignment["id"], seed.r2, 8)).json()

    assert body["distributedTotal"] == 15
    assert body["completedQuantity"] == 10
    assert body["completedAt"] is not None


async def test_completed_at_is_stamped_once(seed, make_assignment, report):
    assignment = await make_assignment(quantity=5)

    first = (await report(assignment["id"], seed.r1, 5)).json()
    second = (await report(assignment["id"], seed.r2, 2)).json()

    assert first["completedAt"] is not None
    assert second["completedAt"] == first["completedAt"]


async def test_range_from_other_category_is_rejected(seed, make_assignment, report, client, headers):
    assignment = await make_assignment(quantity=10)
    await report(assignment["id"], seed.r1, 4)
    before, before_completions = await _state(client, headers, assignment)

    response = await report(assignment["id"], seed.h1, 3)

    assert response.status_code == 400
    body = response.json()
    assert body["type"] == "ValidationError"
    assert body["error"] == "Range does not belong to task category"

    after, after_completions = await _state(client, headers, assignment)
    assert after["rangeQuantities"] == before["rangeQuantities"]
    assert [(rq["rangeId"], rq["quantity"]) for rq in after["rangeQuantities"]] == [(str(seed.r1), 4)]
    assert after["completedQuantity"] == 4
    assert after["completedAt"] is None
    assert [c["totalQuantity"] for c in after_completions] == [4]
    assert after_completions[0]["rangeCompletions"] == before_completions[0]["rangeCompletions"]


async def test_unknown_range_and_assignment(seed, make_assignment, report):
    assignment = await make_assignment(quantity=10)

    response = await report(assignment["id"], uuid.uuid4(), 3)
    assert response.status_code == 404
    assert response.json()["error"] == "Range not found"

    response = await report(uuid.uuid4(), seed.r1, 3)
    assert response.status_code == 404
    assert response.json()["error"] == "Assignment not found"


async def test_negative_quantity_is_a_validation_error(seed, make_assignment, report):
    assignment = await make_assignment(quantity=10)

    response = await report(assignment["id"], seed.r1, -1)

    assert response.status_code == 400
    assert response.json()["type"] == "ValidationError"


async def test_clearing_all_ranges_removes_listing_completion(seed, make_assignment, report, client, headers):
    assignment = await make_assignment(quantity=10)

    await report(assignment["id"], seed.r1, 4)
    completions = (await client.get("/api/listing-completions", headers=headers["listingadmin"])).json()
    assert len(completions) == 1

    body = (await report(assignment["id"], seed.r1, 0)).json()
    assert body["rangeQuantities"] == []
    assert body["completedQuantity"] == 0

    completions = (await client.get("/api/listing-completions", headers=headers["listingadmin"])).json()
    assert completions == []


async def test_submit_rejects_shortfall(seed, make_assignment, report, client, headers):
    assignment = await make_assignment(quantity=10)
    await report(assignment["id"], seed.r1, 7)

    response = await client.post(f"/api/assignments/{assignment['id']}/submit", headers=headers["lister"])

    assert response.status_code == 409
    body = response.json()
    assert body["type"] == "ConflictError"
    assert body["details"] == {"distributed": 7, "quantity": 10, "shortfall": 3}

    current, completions = await _state(client, headers, assignment)
    assert current["completedQuantity"] == 7
    assert current["completedAt"] is None
    assert [c["totalQuantity"] for c in completions] == [7]


async def test_submit_after_full_distribution(seed, make_assignment, report, client, headers):
    assignment = await make_assignment(quantity=10)
    await report(assignment["id"], seed.r1, 4)
    await report(assignment["id"], seed.r2, 6)

    response = await client.post(f"/api/assignments/{assignment['id']}/submit", headers=headers["lister"])

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["completedQuantity"] == 10
    assert body["completedAt"] is not None


async def test_get_ranges(seed, make_assignment, report, client, headers):
    assignment = await make_assignment(quantity=10)
    await report(assignment["id"], seed.r2, 2)

    response = await client.get(f"/api/assignments/{assignment['id']}/ranges", headers=headers["lister"])

    assert response.status_code == 200
    assert response.json() == [
        {"rangeId": str(seed.r2), "range": {"id": str(seed.r2), "name": "R2"}, "quantity": 2}
    ]


async def test_legacy_complete_sets_count_directly(seed, make_assignment, client, headers):
    assignment = await make_assignment(quantity=10)

    response = await client.post(
        f"/api/assignments/{assignment['id']}/complete",
        json={"completedQuantity": 25},
        headers=headers["lister"],
    )

    assert response.status_code == 200
    body = response.json()
    assert body["completedQuantity"] == 10
    assert body["completedAt"] is not None
    assert body["rangeQuantities"] == []


async def test_listing_sheet_sums_range_cells(seed, make_task, make_assignment, report, client, headers):
    task = await make_task()
    first = await make_assignment(quantity=10, task=task)
    second = await make_assignment(quantity=10, task=task, lister="lister2")
    await report(first["id"], seed.r1, 4)
    await report(second["id"], seed.r1, 3, as_user="lister2")
    await report(second["id"], seed.r2, 1, as_user="lister2")

    response = await client.get("/api/listing-completions/sheet", headers=headers["productadmin"])

    assert response.status_code == 200
    rows = {row["range"]: row for row in response.json()}
    assert rows["R1"]["quantity"] == 7
    assert rows["R2"]["quantity"] == 1
    assert rows["R1"]["platform"] == "eBay"
    assert rows["R1"]["store"] == "Store A"
    assert rows["R1"]["category"] == "Ebay Motors"
    assert rows["R1"]["subcategory"] == "Brakes"
