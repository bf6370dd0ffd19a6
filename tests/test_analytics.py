"""Reporting endpoints: per-assignment deduplication and grouping."""

SCHEDULED = "2026-03-10T06:00:00Z"  # 11:30 IST, same reporting day


async def test_listings_summary_counts_each_assignment_once(seed, make_assignment, report, client, headers):
    ranged = await make_assignment(quantity=10, scheduledDate=SCHEDULED)
    await make_assignment(quantity=5, lister="lister2", scheduledDate=SCHEDULED)
    for range_id, quantity in ((seed.r1, 3), (seed.r2, 3), (seed.r3, 4)):
        await report(ranged["id"], range_id, quantity)

    response = await client.get(
        "/api/assignments/analytics/listings-summary",
        params={"dateMode": "single", "dateSingle": "2026-03-10"},
        headers=headers["listingadmin"],
    )

    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 1
    row = rows[0]
    assert row["date"] == "2026-03-10"
    assert row["platform"] == "eBay"
    assert row["store"] == "Store A"
    assert row["totalQuantity"] == 15
    assert row["assignmentsCount"] == 2
    assert row["completedQty"] == 10
    assert row["numListers"] == 2
    assert row["numCategories"] == 1
    assert row["numRanges"] == 3


async def test_listings_summary_date_filter_uses_reporting_day(seed, make_assignment, client, headers):
    # 20:00 UTC on the 9th is 01:30 IST on the 10th
    await make_assignment(quantity=2, scheduledDate="2026-03-09T20:00:00Z")

    params = {"dateMode": "range", "dateFrom": "2026-03-10", "dateTo": "2026-03-10"}
    rows = (await client.get("/api/assignments/analytics/listings-summary", params=params,
                             headers=headers["listingadmin"])).json()
    assert [r["date"] for r in rows] == ["2026-03-10"]

    params = {"dateMode": "single", "dateSingle": "2026-03-09"}
    rows = (await client.get("/api/assignments/analytics/listings-summary", params=params,
                             headers=headers["listingadmin"])).json()
    assert rows == []


async def test_stock_ledger_counts_assigned_quantity_once_per_assignment(
    seed, make_task, make_assignment, report, client, headers
):
    task = await make_task()
    big = await make_assignment(quantity=10, task=task)
    small = await make_assignment(quantity=5, task=task)
    await report(big["id"], seed.r1, 4)
    await report(big["id"], seed.r2, 6)
    await report(small["id"], seed.r1, 5)

    response = await client.get("/api/assignments/analytics/stock-ledger", headers=headers["productadmin"])

    assert response.status_code == 200
    rows = {row["range"]: row for row in response.json()}
    assert set(rows) == {"R1", "R2"}
    assert rows["R1"]["totalAssigned"] == 15
    assert rows["R1"]["totalCompleted"] == 9
    assert rows["R1"]["pending"] == 6
    assert rows["R2"]["totalAssigned"] == 10
    assert rows["R2"]["totalCompleted"] == 6
    assert rows["R2"]["pending"] == 4
    assert rows["R1"]["category"] == "Ebay Motors"
    assert rows["R1"]["subcategory"] == "Brakes"


async def test_stock_ledger_filters_by_range_name(seed, make_assignment, report, client, headers):
    assignment = await make_assignment(quantity=10)
    await report(assignment["id"], seed.r1, 4)
    await report(assignment["id"], seed.r2, 6)

    response = await client.get(
        "/api/assignments/analytics/stock-ledger",
        params={"range": "R2", "category": "Ebay Motors"},
        headers=headers["listingadmin"],
    )

    assert [row["range"] for row in response.json()] == ["R2"]


async def test_admin_lister_groups_by_day_admin_and_lister(seed, make_assignment, report, client, headers):
    first = await make_assignment(quantity=4, scheduledDate=SCHEDULED)
    await make_assignment(quantity=6, scheduledDate=SCHEDULED)
    await make_assignment(quantity=3, lister="lister2", scheduledDate=SCHEDULED)
    await report(first["id"], seed.r1, 4)

    response = await client.get("/api/assignments/analytics/admin-lister", headers=headers["listingadmin"])

    rows = {row["listerName"]: row for row in response.json()}
    assert rows["lister"]["date"] == "2026-03-10"
    assert rows["lister"]["adminName"] == "listingadmin"
    assert rows["lister"]["tasksCount"] == 2
    assert rows["lister"]["quantityTotal"] == 10
    assert rows["lister"]["completedCount"] == 1
    assert rows["lister"]["completedQty"] == 4
    assert rows["lister2"]["tasksCount"] == 1


async def test_task_analytics(seed, make_task, client, headers):
    first = await make_task(date="2026-03-10T06:00:00Z")
    await make_task(date="2026-03-11T06:00:00Z", category="home")
    for task, lister in ((first, "lister"),):
        await client.post(
            f"/api/tasks/{task['id']}/assign",
            json={
                "listerId": str(seed.users[lister]),
                "quantity": 5,
                "listingPlatformId": str(seed.ebay),
                "storeId": str(seed.store_a),
            },
            headers=headers["listingadmin"],
        )
    await client.post(f"/api/tasks/{first['id']}/complete", json={"completedQuantity": 2}, headers=headers["lister"])

    summary = (await client.get("/api/tasks/analytics", headers=headers["productadmin"])).json()
    assert summary == {
        "totalListings": 5,
        "completedQty": 2,
        "numListers": 1,
        "numStores": 1,
        "numCategories": 2,
        "numSubcategories": 2,
    }

    daily = (await client.get("/api/tasks/analytics/daily", headers=headers["productadmin"])).json()
    assert [d["date"] for d in daily] == ["2026-03-11", "2026-03-10"]

    admin_lister = (await client.get("/api/tasks/analytics/admin-lister", headers=headers["productadmin"])).json()
    assigned = [row for row in admin_lister if row["listerName"] == "lister"]
    assert assigned[0]["completedCount"] == 1
    assert assigned[0]["completedQty"] == 2

    lister_daily = (await client.get(
        "/api/tasks/analytics/lister-daily", params={"listerId": str(seed.users["lister"])},
        headers=headers["productadmin"],
    )).json()
    assert len(lister_daily) == 1
    assert lister_daily[0]["platform"] == "eBay"
    assert lister_daily[0]["completedCount"] == 0


async def test_analytics_require_admin_roles(seed, client, headers):
    response = await client.get("/api/assignments/analytics/stock-ledger", headers=headers["lister"])
    assert response.status_code == 403

    response = await client.get("/api/tasks/analytics", headers=headers["lister"])
    assert response.status_code == 403


async def test_task_listings_summary(seed, make_task, client, headers):
    async def assign(task, lister, quantity, platform, store):
        response = await client.post(
            f"/api/tasks/{task['id']}/assign",
            json={
                "listerId": str(seed.users[lister]),
                "quantity": quantity,
                "listingPlatformId": str(platform),
                "storeId": str(store),
            },
            headers=headers["listingadmin"],
        )
        assert response.status_code == 200, response.text

    await assign(await make_task(), "lister", 5, seed.ebay, seed.store_a)
    await assign(await make_task(category="home"), "lister2", 3, seed.ebay, seed.store_a)
    await assign(await make_task(), "lister", 4, seed.walmart, seed.store_w)
    await make_task()  # draft, never handed out

    response = await client.get("/api/tasks/analytics/listings-summary", headers=headers["productadmin"])

    assert response.status_code == 200
    rows = {row["store"]: row for row in response.json()}
    assert set(rows) == {"Store A", "Store W"}
    assert rows["Store A"]["date"] == rows["Store W"]["date"]
    assert rows["Store A"]["platform"] == "eBay"
    assert rows["Store A"]["totalQuantity"] == 8
    assert rows["Store A"]["assignmentsCount"] == 2
    assert rows["Store A"]["numListers"] == 2
    assert rows["Store A"]["numCategories"] == 2
    assert rows["Store A"]["numSubcategories"] == 2
    assert rows["Store W"]["totalQuantity"] == 4
    assert rows["Store W"]["numListers"] == 1

    filtered = (await client.get(
        "/api/tasks/analytics/listings-summary", params={"storeId": str(seed.store_w)},
        headers=headers["listingadmin"],
    )).json()
    assert [row["store"] for row in filtered] == ["Store W"]

    response = await client.get("/api/tasks/analytics/listings-summary", headers=headers["lister"])
    assert response.status_code == 403
