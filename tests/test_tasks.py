"""Task CRUD, task-level assignment and completion."""


async def test_create_task_starts_as_draft(seed, make_task):
    task = await make_task(extraInfo={"itemId": "v1|1234|0", "condition": "New"})

    assert task["status"] == "draft"
    assert task["completedQuantity"] == 0
    assert task["category"]["name"] == "Ebay Motors"
    assert task["sourcePrice"] == 12.5
    assert task["extraInfo"] == {"itemId": "v1|1234|0", "condition": "New"}
    assert task["createdBy"]["username"] == "productadmin"


async def test_create_task_accepts_legacy_link_field(seed, make_task):
    task = await make_task(supplierLink=None, link="https://old-client.example.com/item")

    assert task["supplierLink"] == "https://old-client.example.com/item"


async def test_create_task_rejects_mismatched_subcategory(seed, client, headers):
    payload = {
        "productTitle": "Knife block",
        "supplierLink": "https://supplier.example.com/item/2",
        "sourcePrice": 5,
        "sellingPrice": 15,
        "sourcePlatformId": str(seed.source_platform),
        "marketplace": "EBAY_AUS",
        "categoryId": str(seed.motors),
        "subcategoryId": str(seed.kitchen),
    }

    response = await client.post("/api/tasks", json=payload, headers=headers["productadmin"])

    assert response.status_code == 400
    assert response.json()["error"] == "Subcategory does not belong to category"


async def test_create_task_requires_known_marketplace(seed, make_task, client, headers):
    payload = {
        "productTitle": "Brake rotor",
        "supplierLink": "https://supplier.example.com/item/3",
        "sourcePrice": 5,
        "sellingPrice": 15,
        "sourcePlatformId": str(seed.source_platform),
        "marketplace": "EBAY_MARS",
        "categoryId": str(seed.motors),
        "subcategoryId": str(seed.brakes),
    }

    response = await client.post("/api/tasks", json=payload, headers=headers["productadmin"])

    assert response.status_code == 400


async def test_first_assignment_moves_task_to_assigned(seed, make_task, make_assignment, client, headers):
    task = await make_task()
    await make_assignment(quantity=3, task=task)

    response = await client.get(f"/api/tasks/{task['id']}", headers=headers["listingadmin"])

    body = response.json()
    assert body["status"] == "assigned"
    assert body["assignedById"] == str(seed.users["listingadmin"])
    assert body["assignedAt"] is not None


async def test_assign_and_complete_task(seed, make_task, client, headers):
    task = await make_task()
    assign = {
        "listerId": str(seed.users["lister"]),
        "quantity": 5,
        "listingPlatformId": str(seed.ebay),
        "storeId": str(seed.store_a),
    }
    response = await client.post(f"/api/tasks/{task['id']}/assign", json=assign, headers=headers["listingadmin"])
    assert response.status_code == 200
    assert response.json()["status"] == "assigned"

    response = await client.post(
        f"/api/tasks/{task['id']}/complete", json={"completedQuantity": 3}, headers=headers["lister"]
    )
    body = response.json()
    assert body["completedQuantity"] == 3
    assert body["status"] == "assigned"
    assert body["completedAt"] is None

    response = await client.post(
        f"/api/tasks/{task['id']}/complete", json={"completedQuantity": 99}, headers=headers["lister"]
    )
    body = response.json()
    assert body["completedQuantity"] == 5
    assert body["status"] == "completed"
    assert body["completedAt"] is not None

    tasks = (await client.get("/api/tasks", headers=headers["lister"])).json()
    assert [t["id"] for t in tasks] == [task["id"]]


async def test_complete_task_of_another_lister_is_not_found(seed, make_task, client, headers):
    task = await make_task()
    assign = {
        "listerId": str(seed.users["lister"]),
        "quantity": 5,
        "listingPlatformId": str(seed.ebay),
        "storeId": str(seed.store_a),
    }
    await client.post(f"/api/tasks/{task['id']}/assign", json=assign, headers=headers["listingadmin"])

    response = await client.post(f"/api/tasks/{task['id']}/complete", headers=headers["lister2"])

    assert response.status_code == 404


async def test_assign_rejects_store_on_other_platform(seed, make_task, client, headers):
    task = await make_task()
    assign = {
        "listerId": str(seed.users["lister"]),
        "quantity": 5,
        "listingPlatformId": str(seed.ebay),
        "storeId": str(seed.store_w),
    }

    response = await client.post(f"/api/tasks/{task['id']}/assign", json=assign, headers=headers["listingadmin"])

    assert response.status_code == 400
    assert response.json()["error"] == "Store does not belong to listing platform"


async def test_update_applies_fields_by_role(seed, make_task, client, headers):
    task = await make_task()
    changes = {"productTitle": "Renamed", "quantity": 8}

    body = (await client.put(f"/api/tasks/{task['id']}", json=changes, headers=headers["listingadmin"])).json()
    assert body["productTitle"] == "Ceramic brake pad set"
    assert body["quantity"] == 8

    body = (await client.put(f"/api/tasks/{task['id']}", json={"quantity": 2, "productTitle": "Pads"},
                             headers=headers["productadmin"])).json()
    assert body["productTitle"] == "Pads"
    assert body["quantity"] == 8

    body = (await client.put(f"/api/tasks/{task['id']}", json={"quantity": 4, "productTitle": "Both"},
                             headers=headers["superadmin"])).json()
    assert body["productTitle"] == "Both"
    assert body["quantity"] == 4


async def test_manual_status_reset(seed, make_task, client, headers):
    task = await make_task()

    body = (await client.put(f"/api/tasks/{task['id']}", json={"status": "completed"},
                             headers=headers["listingadmin"])).json()
    assert body["status"] == "completed"
    assert body["completedAt"] is not None

    body = (await client.put(f"/api/tasks/{task['id']}", json={"status": "draft"},
                             headers=headers["listingadmin"])).json()
    assert body["status"] == "draft"
    assert body["completedAt"] is None


async def test_list_tasks_paged(seed, make_task, client, headers):
    for title in ("A", "B", "C"):
        await make_task(productTitle=title)

    response = await client.get(
        "/api/tasks",
        params={"page": 2, "limit": 2, "sortBy": "productTitle", "sortOrder": "asc"},
        headers=headers["productadmin"],
    )

    body = response.json()
    assert body["total"] == 3
    assert body["totalPages"] == 2
    assert body["page"] == 2
    assert [t["productTitle"] for t in body["items"]] == ["C"]


async def test_list_tasks_search(seed, make_task, client, headers):
    await make_task(productTitle="Brake caliper")
    await make_task(productTitle="Oil filter")

    response = await client.get("/api/tasks", params={"search": "caliper"}, headers=headers["productadmin"])

    assert [t["productTitle"] for t in response.json()] == ["Brake caliper"]


async def test_unsupported_sort_is_rejected(seed, client, headers):
    response = await client.get("/api/tasks", params={"sortBy": "price"}, headers=headers["productadmin"])

    assert response.status_code == 400
