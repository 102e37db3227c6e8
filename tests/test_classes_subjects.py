import pytest
from httpx import AsyncClient


async def _create_class(client: AsyncClient, headers: dict, name: str, level: str, section: str, year: str = "2024-2025") -> dict:
    response = await client.post(
        "/api/v1/classes",
        headers=headers,
        json={"name": name, "level": level, "section": section, "academic_year": year},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_classes_ordered_by_grade_not_text(client: AsyncClient, admin: dict) -> None:
    await _create_class(client, admin["headers"], "10-A", "grade_10", "A")
    await _create_class(client, admin["headers"], "2-B", "grade_2", "B")
    await _create_class(client, admin["headers"], "9-B", "grade_9", "B")
    await _create_class(client, admin["headers"], "2-A", "grade_2", "A")

    response = await client.get("/api/v1/classes", headers=admin["headers"])
    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["2-A", "2-B", "9-B", "10-A"]


@pytest.mark.asyncio
async def test_class_defaults_and_year_filter(client: AsyncClient, admin: dict) -> None:
    created = await _create_class(client, admin["headers"], "1-A", "grade_1", "A")
    assert created["capacity"] == 30
    await _create_class(client, admin["headers"], "1-A", "grade_1", "A", year="2025-2026")

    response = await client.get(
        "/api/v1/classes", headers=admin["headers"], params={"academic_year": "2025-2026"}
    )
    assert [c["academic_year"] for c in response.json()] == ["2025-2026"]


@pytest.mark.asyncio
async def test_class_rejects_unknown_level(client: AsyncClient, admin: dict) -> None:
    response = await client.post(
        "/api/v1/classes",
        headers=admin["headers"],
        json={"name": "13-A", "level": "grade_13", "section": "A", "academic_year": "2024-2025"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_class_update_and_delete(client: AsyncClient, admin: dict) -> None:
    created = await _create_class(client, admin["headers"], "5-A", "grade_5", "A")
    class_id = created["id"]

    updated = await client.patch(
        f"/api/v1/classes/{class_id}", headers=admin["headers"], json={"room_number": "204", "capacity": 25}
    )
    assert updated.status_code == 200
    assert updated.json()["room_number"] == "204"
    assert updated.json()["capacity"] == 25

    fetched = await client.get(f"/api/v1/classes/{class_id}", headers=admin["headers"])
    assert fetched.json()["name"] == "5-A"

    deleted = await client.delete(f"/api/v1/classes/{class_id}", headers=admin["headers"])
    assert deleted.status_code == 204

    missing = await client.get(f"/api/v1/classes/{class_id}", headers=admin["headers"])
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_subjects_ordered_by_name_with_uppercase_codes(client: AsyncClient, admin: dict) -> None:
    for name, code in (("Physical Science", "sci"), ("English Literature", "eng"), ("Mathematics", "Math")):
        response = await client.post(
            "/api/v1/subjects", headers=admin["headers"], json={"name": name, "code": code}
        )
        assert response.status_code == 201

    response = await client.get("/api/v1/subjects", headers=admin["headers"])
    assert [(s["name"], s["code"]) for s in response.json()] == [
        ("English Literature", "ENG"),
        ("Mathematics", "MATH"),
        ("Physical Science", "SCI"),
    ]


@pytest.mark.asyncio
async def test_subject_duplicates_conflict(client: AsyncClient, admin: dict) -> None:
    first = await client.post(
        "/api/v1/subjects", headers=admin["headers"], json={"name": "Mathematics", "code": "MATH"}
    )
    assert first.status_code == 201

    same_name = await client.post(
        "/api/v1/subjects", headers=admin["headers"], json={"name": "Mathematics", "code": "MTH"}
    )
    assert same_name.status_code == 409

    same_code = await client.post(
        "/api/v1/subjects", headers=admin["headers"], json={"name": "Maths", "code": "math"}
    )
    assert same_code.status_code == 409

    # Subjects without a code do not collide on it
    for name in ("Art", "Music"):
        resp = await client.post("/api/v1/subjects", headers=admin["headers"], json={"name": name})
        assert resp.status_code == 201
        assert resp.json()["code"] is None


@pytest.mark.asyncio
async def test_subject_update_and_delete(client: AsyncClient, admin: dict) -> None:
    created = await client.post(
        "/api/v1/subjects", headers=admin["headers"], json={"name": "Chemistry", "code": "chem"}
    )
    subject_id = created.json()["id"]

    updated = await client.patch(
        f"/api/v1/subjects/{subject_id}", headers=admin["headers"], json={"description": "Lab science"}
    )
    assert updated.status_code == 200
    assert updated.json()["description"] == "Lab science"
    assert updated.json()["code"] == "CHEM"

    deleted = await client.delete(f"/api/v1/subjects/{subject_id}", headers=admin["headers"])
    assert deleted.status_code == 204
    again = await client.delete(f"/api/v1/subjects/{subject_id}", headers=admin["headers"])
    assert again.status_code == 404
