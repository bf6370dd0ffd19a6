"""Store-wise and lister-wise workload totals and their day drill-downs."""
import pytest

MARCH_10 = "2026-03-10T06:00:00Z"
MARCH_11 = "2026-03-11T06:00:00Z"


@pytest.fixture
async def workload(seed, make_assignment, report):
    """Lister: 10 (4 done) + 3 on the 10th, 2 on the 11th. Lister2: 5 on the 10th."""
    big = await make_assignment(quantity=10, scheduledDate=MARCH_10)
    await report(big["id"], seed.r1, 4)
    await make_assignment(quantity=5, lister="lister2", scheduledDate=MARCH_10)
    await make_assignment(quantity=3, store=seed.store_b, scheduledDate=MARCH_10)
    await make_assignment(quantity=2, scheduledDate=MARCH_11)
    return big


async def test_store_wise_summary(workload, client, headers):
    response = await client.get("/api/store-wise-tasks/summary", headers=headers["listingadmin"])

    assert response.status_code == 200
    rows = [
        (r["date"], r["storeName"], r["totalQuantity"], r["completedQuantity"], r["pendingQuantity"], r["assignmentCount"])
        for r in response.json()
    ]
    assert rows == [
        ("2026-03-11", "Store A", 2, 0, 2, 1),
        ("2026-03-10", "Store A", 15, 4, 11, 2),
        ("2026-03-10", "Store B", 3, 0, 3, 1),
    ]


async def test_store_wise_details(seed, workload, client, headers):
    params = {"storeId": str(seed.store_a), "date": "2026-03-10"}

    body = (await client.get("/api/store-wise-tasks/details", params=params, headers=headers["listingadmin"])).json()
    assert body["total"] == 2
    assert body["page"] == 1
    assert {item["quantity"] for item in body["items"]} == {10, 5}

    filtered = {**params, "listerUsername": "lister2"}
    body = (await client.get("/api/store-wise-tasks/details", params=filtered, headers=headers["listingadmin"])).json()
    assert [item["quantity"] for item in body["items"]] == [5]

    paged = {**params, "page": 2, "limit": 1}
    body = (await client.get("/api/store-wise-tasks/details", params=paged, headers=headers["listingadmin"])).json()
    assert body["total"] == 2
    assert len(body["items"]) == 1


async def test_store_wise_details_requires_store_and_date(seed, client, headers):
    response = await client.get(
        "/api/store-wise-tasks/details", params={"storeId": str(seed.store_a)}, headers=headers["listingadmin"]
    )
    assert response.status_code == 400

    response = await client.get(
        "/api/store-wise-tasks/details",
        params={"storeId": str(seed.store_a), "date": "10/03/2026"},
        headers=headers["listingadmin"],
    )
    assert response.status_code == 400


async def test_lister_summary(seed, workload, client, headers):
    response = await client.get("/api/lister-info/summary", headers=headers["superadmin"])

    assert response.status_code == 200
    rows = response.json()
    assert [(r["date"], r["listerName"]) for r in rows] == [
        ("2026-03-11", "lister"),
        ("2026-03-10", "lister"),
        ("2026-03-10", "lister2"),
    ]
    busy = rows[1]
    assert busy["listerId"] == str(seed.users["lister"])
    assert busy["totalQuantity"] == 13
    assert busy["completedQuantity"] == 4
    assert busy["pendingQuantity"] == 9
    assert busy["assignmentCount"] == 2
    assert busy["storeCount"] == 2
    assert [s["storeName"] for s in busy["stores"]] == ["Store A", "Store B"]
    assert rows[2]["storeCount"] == 1


async def test_lister_details_pages(seed, workload, client, headers):
    params = {"listerId": str(seed.users["lister"]), "date": "2026-03-10", "limit": 1}

    body = (await client.get("/api/lister-info/details", params=params, headers=headers["listingadmin"])).json()

    assert body["total"] == 2
    assert body["pages"] == 2
    assert body["limit"] == 1
    assert len(body["items"]) == 1
    assert body["items"][0]["lister"]["username"] == "lister"


async def test_workload_reports_are_for_listing_admins(seed, client, headers):
    for path in ("/api/store-wise-tasks/summary", "/api/lister-info/summary"):
        assert (await client.get(path, headers=headers["productadmin"])).status_code == 403
        assert (await client.get(path, headers=headers["lister"])).status_code == 403
