from decimal import Decimal

import pytest
from httpx import AsyncClient


async def _create_class(client: AsyncClient, name: str, fee: int) -> dict:
    resp = await client.post("/api/v1/classes", json={"name": name, "monthly_fee": fee})
    assert resp.status_code == 201
    return resp.json()


async def _create_student(client: AsyncClient, class_id: str, **overrides) -> dict:
    payload = {
        "class_id": class_id,
        "roll_no": "12",
        "name": "Asha Verma",
        "father_name": "Ravi Verma",
        "contact": "9876543210",
        "admission_date": "2024-01-15",
        "transport_fee": 200,
    }
    payload.update(overrides)
    resp = await client.post("/api/v1/students", json=payload)
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_new_student_gets_initial_history(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    student = await _create_student(client, cls["id"])
    assert student["class_history"] == [{"class_id": cls["id"], "start_date": "2024-01-15"}]


@pytest.mark.asyncio
async def test_dues_and_payment_breakdown(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    student = await _create_student(client, cls["id"])
    sid = student["id"]

    dues = (await client.get(f"/api/v1/fees/students/{sid}/dues", params={"as_of": "2024-03-01"})).json()
    assert Decimal(dues["total_expected"]) == Decimal("3600")
    assert [m["status"] for m in dues["month_status"]] == ["unpaid", "unpaid", "unpaid"]

    preview = await client.post(
        f"/api/v1/fees/students/{sid}/preview",
        params={"as_of": "2024-03-01"},
        json={"amount": 1500},
    )
    assert preview.status_code == 200
    assert [i["description"] for i in preview.json()["items"]] == [
        "January 2024 Fee (Tuit.+Trans.)",
        "February 2024 Fee (Tuit.+Trans.) (Partial)",
    ]

    resp = await client.post(
        f"/api/v1/fees/students/{sid}/payments",
        json={"amount_paid": 1500, "payment_method": "cash", "paid_at": "2024-03-01T10:00:00"},
    )
    assert resp.status_code == 201
    payment = resp.json()
    assert [(b["description"], Decimal(b["amount"])) for b in payment["breakdown"]] == [
        ("January 2024 Fee (Tuit.+Trans.)", Decimal("1200")),
        ("February 2024 Fee (Tuit.+Trans.) (Partial)", Decimal("300")),
    ]

    dues = (await client.get(f"/api/v1/fees/students/{sid}/dues", params={"as_of": "2024-03-01"})).json()
    assert [m["status"] for m in dues["month_status"]] == ["paid", "partial", "unpaid"]
    assert Decimal(dues["balance"]) == Decimal("2100")

    history = (await client.get(f"/api/v1/fees/students/{sid}/payments")).json()
    assert len(history) == 1


@pytest.mark.asyncio
async def test_stored_breakdown_survives_fee_change(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    student = await _create_student(client, cls["id"])
    sid = student["id"]
    await client.post(
        f"/api/v1/fees/students/{sid}/payments",
        json={"amount_paid": 1200, "paid_at": "2024-03-01T10:00:00"},
    )

    resp = await client.put(f"/api/v1/classes/{cls['id']}", json={"monthly_fee": 1300})
    assert resp.status_code == 200

    history = (await client.get(f"/api/v1/fees/students/{sid}/payments")).json()
    assert Decimal(history[0]["breakdown"][0]["amount"]) == Decimal("1200")

    dues = (await client.get(f"/api/v1/fees/students/{sid}/dues", params={"as_of": "2024-03-01"})).json()
    assert Decimal(dues["total_expected"]) == Decimal("4500")
    assert dues["month_status"][0]["status"] == "partial"


@pytest.mark.asyncio
async def test_one_off_item_and_overpayment(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    student = await _create_student(client, cls["id"])
    sid = student["id"]
    item = await client.post(
        "/api/v1/fees/items",
        json={"student_id": sid, "category": "exam", "title": "Exam Fee", "amount": 500, "month_year": "2024-03"},
    )
    assert item.status_code == 201

    resp = await client.post(
        f"/api/v1/fees/students/{sid}/payments",
        params={"as_of": "2024-03-01"},
        json={"amount_paid": 5000, "payment_method": "online", "paid_at": "2024-03-01T10:00:00"},
    )
    breakdown = resp.json()["breakdown"]
    assert breakdown[-2]["description"] == "Exam Fee"
    assert breakdown[-1]["description"] == "Excess / Advance Credit"
    assert Decimal(breakdown[-1]["amount"]) == Decimal("900")

    dues = (await client.get(f"/api/v1/fees/students/{sid}/dues", params={"as_of": "2024-03-01"})).json()
    assert Decimal(dues["balance"]) == Decimal("-900")
    assert Decimal(dues["excess_credit"]) == Decimal("900")
    assert dues["one_off_status"][0]["status"] == "paid"


@pytest.mark.asyncio
async def test_payment_must_be_positive(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    student = await _create_student(client, cls["id"])
    resp = await client.post(f"/api/v1/fees/students/{student['id']}/payments", json={"amount_paid": 0})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_promotion_bills_new_class_from_next_month(client: AsyncClient) -> None:
    cls_a = await _create_class(client, "Class 1", 1000)
    cls_b = await _create_class(client, "Class 2", 1500)
    student = await _create_student(client, cls_a["id"], admission_date="2024-01-01", transport_fee=0)
    sid = student["id"]

    resp = await client.post(
        "/api/v1/students/promote",
        json={"student_ids": [sid], "target_class_id": cls_b["id"], "promoted_on": "2024-02-15"},
    )
    assert resp.status_code == 200
    result = resp.json()
    assert result["promoted_count"] == 1
    assert result["effective_date"] == "2024-03-01"

    student = (await client.get(f"/api/v1/students/{sid}")).json()
    assert student["class_id"] == cls_b["id"]
    assert [h["start_date"] for h in student["class_history"]] == ["2024-01-01", "2024-03-01"]

    dues = (await client.get(f"/api/v1/fees/students/{sid}/dues", params={"as_of": "2024-04-01"})).json()
    assert [Decimal(m["tuition"]) for m in dues["month_status"]] == [
        Decimal("1000"),
        Decimal("1000"),
        Decimal("1500"),
        Decimal("1500"),
    ]


@pytest.mark.asyncio
async def test_promotion_to_unknown_class(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    student = await _create_student(client, cls["id"])
    resp = await client.post(
        "/api/v1/students/promote",
        json={"student_ids": [student["id"]], "target_class_id": "00000000-0000-0000-0000-000000000001"},
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_inactive_student_stops_accruing(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    student = await _create_student(client, cls["id"], admission_date="2024-01-01", transport_fee=0)
    resp = await client.put(
        f"/api/v1/students/{student['id']}",
        json={"is_active": False, "inactive_date": "2024-02-10"},
    )
    assert resp.status_code == 200

    dues = (await client.get(f"/api/v1/fees/students/{student['id']}/dues", params={"as_of": "2024-06-01"})).json()
    assert [m["month"] for m in dues["month_status"]] == ["2024-01", "2024-02"]
    assert Decimal(dues["total_expected"]) == Decimal("2000")


@pytest.mark.asyncio
async def test_class_in_use_cannot_be_deleted(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    await _create_student(client, cls["id"])
    resp = await client.delete(f"/api/v1/classes/{cls['id']}")
    assert resp.status_code == 400

    dup = await client.post("/api/v1/classes", json={"name": "Class 1", "monthly_fee": 900})
    assert dup.status_code == 409


@pytest.mark.asyncio
async def test_summary(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    first = await _create_student(client, cls["id"], transport_fee=0)
    await _create_student(client, cls["id"], roll_no="13", name="Bilal Khan", transport_fee=0, is_active=False, inactive_date="2024-01-31")
    await client.post(
        f"/api/v1/fees/students/{first['id']}/payments",
        json={"amount_paid": 1000, "paid_at": "2024-03-01T10:00:00"},
    )

    summary = (await client.get("/api/v1/fees/summary", params={"as_of": "2024-03-01"})).json()
    assert Decimal(summary["total_collection"]) == Decimal("1000")
    # 3000 - 1000 for the active student, 1000 for the one who left in January
    assert Decimal(summary["pending_dues"]) == Decimal("3000")
    assert summary["active_students"] == 1
    assert summary["total_classes"] == 1
    assert summary["students_per_class"][0]["student_count"] == 2


@pytest.mark.asyncio
async def test_unknown_student_dues(client: AsyncClient) -> None:
    resp = await client.get("/api/v1/fees/students/00000000-0000-0000-0000-000000000001/dues")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_stored_amount_matches_breakdown(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    student = await _create_student(client, cls["id"])
    url = f"/api/v1/fees/students/{student['id']}/payments"

    resp = await client.post(url, json={"amount_paid": "100.555"})
    assert resp.status_code == 422
    preview = await client.post(f"/api/v1/fees/students/{student['id']}/preview", json={"amount": "100.555"})
    assert preview.status_code == 422

    resp = await client.post(url, json={"amount_paid": "100.55"})
    assert resp.status_code == 201
    payment = resp.json()
    assert Decimal(payment["amount_paid"]) == sum(Decimal(b["amount"]) for b in payment["breakdown"])

    stored = (await client.get(url)).json()[0]
    assert Decimal(stored["amount_paid"]) == Decimal("100.55")
    assert sum(Decimal(b["amount"]) for b in stored["breakdown"]) == Decimal("100.55")


@pytest.mark.asyncio
async def test_fee_inputs_limited_to_two_decimals(client: AsyncClient) -> None:
    resp = await client.post("/api/v1/classes", json={"name": "Class 1", "monthly_fee": "1000.005"})
    assert resp.status_code == 422
    cls = await _create_class(client, "Class 1", 1000)
    resp = await client.post(
        "/api/v1/students",
        json={"class_id": cls["id"], "roll_no": "1", "name": "Asha Verma", "admission_date": "2024-01-15", "transport_fee": "0.001"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_backdated_payment_split_as_previewed(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    student = await _create_student(client, cls["id"])
    sid = student["id"]

    preview = (await client.post(f"/api/v1/fees/students/{sid}/preview", json={"amount": 5000})).json()
    resp = await client.post(
        f"/api/v1/fees/students/{sid}/payments",
        json={"amount_paid": 5000, "paid_at": "2024-01-20T10:00:00"},
    )
    assert resp.status_code == 201
    payment = resp.json()
    assert payment["paid_at"].startswith("2024-01-20")
    assert [(b["description"], Decimal(b["amount"])) for b in payment["breakdown"]] == [
        (i["description"], Decimal(i["amount"])) for i in preview["items"]
    ]
    assert "Excess / Advance Credit" not in [b["description"] for b in payment["breakdown"]]


@pytest.mark.asyncio
async def test_bulk_fee_skips_inactive_students(client: AsyncClient) -> None:
    cls = await _create_class(client, "Class 1", 1000)
    other = await _create_class(client, "Class 2", 1500)
    active = await _create_student(client, cls["id"], transport_fee=0)
    left = await _create_student(client, cls["id"], roll_no="13", name="Bilal Khan", is_active=False, inactive_date="2024-01-31")
    elsewhere = await _create_student(client, other["id"], roll_no="1", name="Chitra Rao")

    resp = await client.post(
        "/api/v1/fees/items/bulk",
        json={"class_id": cls["id"], "category": "exam", "title": "Annual Exam", "amount": "450.50", "month_year": "2024-03"},
    )
    assert resp.status_code == 201
    result = resp.json()
    assert result["created_count"] == 1
    assert [i["student_id"] for i in result["items"]] == [active["id"]]

    dues = (await client.get(f"/api/v1/fees/students/{active['id']}/dues", params={"as_of": "2024-03-01"})).json()
    assert [(i["title"], Decimal(i["amount"])) for i in dues["one_off_status"]] == [("Annual Exam", Decimal("450.50"))]
    assert Decimal(dues["total_expected"]) == Decimal("3450.50")

    for sid in (left["id"], elsewhere["id"]):
        items = (await client.get("/api/v1/fees/items", params={"student_id": sid})).json()
        assert items == []


@pytest.mark.asyncio
async def test_bulk_fee_unknown_class(client: AsyncClient) -> None:
    resp = await client.post(
        "/api/v1/fees/items/bulk",
        json={"class_id": "00000000-0000-0000-0000-000000000001", "title": "Annual Exam", "amount": 450},
    )
    assert resp.status_code == 404
