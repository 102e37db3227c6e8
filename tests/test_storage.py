import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.core.exceptions import ServiceError
from schoolerp.core.file_store import LocalFileStore
from schoolerp.core.models import StorageBucket

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.mark.asyncio
async def test_upload_download_delete(client: AsyncClient, admin: dict, buckets, file_store: LocalFileStore) -> None:
    upload = await client.post(
        "/api/v1/storage/object/student-photos/s001/avatar.png",
        headers=admin["headers"],
        files={"file": ("avatar.png", PNG_BYTES, "image/png")},
    )
    assert upload.status_code == 200, upload.text
    body = upload.json()
    assert body["bucket_id"] == "student-photos"
    assert body["name"] == "s001/avatar.png"
    assert body["size"] == len(PNG_BYTES)
    assert body["owner"] == admin["id"]
    assert (file_store.root / "student-photos" / "s001" / "avatar.png").read_bytes() == PNG_BYTES

    download = await client.get("/api/v1/storage/object/student-photos/s001/avatar.png", headers=admin["headers"])
    assert download.status_code == 200
    assert download.content == PNG_BYTES
    assert download.headers["content-type"] == "image/png"

    deleted = await client.delete("/api/v1/storage/object/student-photos/s001/avatar.png", headers=admin["headers"])
    assert deleted.status_code == 204
    assert not (file_store.root / "student-photos" / "s001" / "avatar.png").exists()

    gone = await client.get("/api/v1/storage/object/student-photos/s001/avatar.png", headers=admin["headers"])
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_upload_upserts_by_default(client: AsyncClient, admin: dict, buckets) -> None:
    path = "/api/v1/storage/object/teacher-photos/t001.png"
    first = await client.post(path, headers=admin["headers"], files={"file": ("t.png", PNG_BYTES, "image/png")})
    assert first.status_code == 200

    replacement = PNG_BYTES + b"more"
    second = await client.post(path, headers=admin["headers"], files={"file": ("t.png", replacement, "image/png")})
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["size"] == len(replacement)

    download = await client.get(path, headers=admin["headers"])
    assert download.content == replacement

    no_upsert = await client.post(
        path,
        headers=admin["headers"],
        params={"upsert": "false"},
        files={"file": ("t.png", PNG_BYTES, "image/png")},
    )
    assert no_upsert.status_code == 409


@pytest.mark.asyncio
async def test_upload_checks_bucket_limits(client: AsyncClient, admin: dict, buckets) -> None:
    missing = await client.post(
        "/api/v1/storage/object/no-such-bucket/a.png",
        headers=admin["headers"],
        files={"file": ("a.png", PNG_BYTES, "image/png")},
    )
    assert missing.status_code == 404

    wrong_type = await client.post(
        "/api/v1/storage/object/student-photos/a.txt",
        headers=admin["headers"],
        files={"file": ("a.txt", b"hello", "text/plain")},
    )
    assert wrong_type.status_code == 415

    too_big = await client.post(
        "/api/v1/storage/object/student-photos/big.png",
        headers=admin["headers"],
        files={"file": ("big.png", b"\x00" * (5242880 + 1), "image/png")},
    )
    assert too_big.status_code == 413

    pdf = await client.post(
        "/api/v1/storage/object/documents/report.pdf",
        headers=admin["headers"],
        files={"file": ("report.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert pdf.status_code == 200


@pytest.mark.asyncio
async def test_non_admin_cannot_write_or_read_others_files(
    client: AsyncClient, admin: dict, make_user, buckets
) -> None:
    student = await make_user("pupil@example.com")

    upload = await client.post(
        "/api/v1/storage/object/student-photos/me.png",
        headers=student["headers"],
        files={"file": ("me.png", PNG_BYTES, "image/png")},
    )
    assert upload.status_code == 403
    assert upload.json()["detail"] == 'new row violates row-level security policy for table "storage_objects"'

    await client.post(
        "/api/v1/storage/object/student-photos/admin.png",
        headers=admin["headers"],
        files={"file": ("admin.png", PNG_BYTES, "image/png")},
    )
    read = await client.get("/api/v1/storage/object/student-photos/admin.png", headers=student["headers"])
    assert read.status_code == 404
    delete = await client.delete("/api/v1/storage/object/student-photos/admin.png", headers=student["headers"])
    assert delete.status_code == 404


@pytest.mark.asyncio
async def test_public_url_and_public_route(
    client: AsyncClient, admin: dict, buckets, db_session: AsyncSession
) -> None:
    url = await client.get("/api/v1/storage/public-url/student-photos/s001/avatar.png")
    assert url.status_code == 200
    assert url.json()["public_url"] == "http://localhost:8000/api/v1/storage/public/student-photos/s001/avatar.png"

    await client.post(
        "/api/v1/storage/object/student-photos/s001/avatar.png",
        headers=admin["headers"],
        files={"file": ("avatar.png", PNG_BYTES, "image/png")},
    )

    private = await client.get("/api/v1/storage/public/student-photos/s001/avatar.png")
    assert private.status_code == 404

    bucket = await db_session.get(StorageBucket, "student-photos")
    bucket.public = True
    await db_session.commit()

    public = await client.get("/api/v1/storage/public/student-photos/s001/avatar.png")
    assert public.status_code == 200
    assert public.content == PNG_BYTES


def test_file_store_rejects_paths_outside_bucket(tmp_path) -> None:
    store = LocalFileStore(str(tmp_path))
    for bucket_id, path in (("documents", "../escape.txt"), ("documents", "a/../../escape.txt"), ("..", "x"), ("documents", "")):
        with pytest.raises(ServiceError) as exc:
            store.write(bucket_id, path, b"x")
        assert exc.value.status_code == 400


def test_file_store_roundtrip(tmp_path) -> None:
    store = LocalFileStore(str(tmp_path))
    store.write("documents", "nested/dir/file.pdf", b"%PDF")
    assert store.read("documents", "nested/dir/file.pdf") == b"%PDF"
    store.delete("documents", "nested/dir/file.pdf")
    assert store.read("documents", "nested/dir/file.pdf") is None
    # Deleting a missing file is a no-op
    store.delete("documents", "nested/dir/file.pdf")


@pytest.mark.asyncio
async def test_failed_commit_leaves_no_file(
    client: AsyncClient, admin: dict, buckets, file_store: LocalFileStore, monkeypatch
) -> None:
    async def _conflicting_commit(self) -> None:
        raise IntegrityError("INSERT INTO storage_objects", {}, Exception("unique constraint"))

    monkeypatch.setattr(AsyncSession, "commit", _conflicting_commit)

    response = await client.post(
        "/api/v1/storage/object/documents/race.pdf",
        headers=admin["headers"],
        files={"file": ("race.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert response.status_code == 409
    assert not (file_store.root / "documents" / "race.pdf").exists()
