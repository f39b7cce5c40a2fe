def _upload(client, headers, name="notes.txt", data=b"hello", content_type="text/plain"):
    return client.post("/api/v1/files/upload", files={"file": (name, data, content_type)}, headers=headers)


def test_upload_requires_token(client):
    r = client.post("/api/v1/files/upload", files={"file": ("a.txt", b"x", "text/plain")})
    assert r.status_code == 401


def test_upload_download_and_view(client, make_user, storage):
    _, headers = make_user("uploader@example.com")
    r = _upload(client, headers)
    assert r.status_code == 201
    record = r.json()["data"]
    assert record["original_name"] == "notes.txt"
    assert record["size"] == 5
    assert record["key"] in storage.objects
    assert record["url"].endswith(f"/api/v1/files/view/{record['key']}")

    r = client.get(f"/api/v1/files/download/{record['key']}")
    assert r.status_code == 200
    assert r.content == b"hello"
    assert r.headers["content-type"].startswith("text/plain")
    assert r.headers["content-disposition"] == 'attachment; filename="notes.txt"'
    assert r.headers["etag"]

    r = client.get(f"/api/v1/files/view/{record['key']}")
    assert r.status_code == 200
    assert r.headers["content-disposition"] == 'inline; filename="notes.txt"'


def test_download_missing_object(client):
    r = client.get("/api/v1/files/download/uploads/1/missing.txt")
    assert r.status_code == 404
    assert r.json()["error"] == "file not found"


def test_upload_rejections(client, make_user, storage):
    _, headers = make_user("picky@example.com")

    r = _upload(client, headers, data=b"")
    assert r.status_code == 400
    assert r.json()["error"] == "file is empty"

    r = _upload(client, headers, name="big.txt", data=b"x" * 2048)
    assert r.status_code == 400

    r = _upload(client, headers, name="doc.pdf", data=b"%PDF", content_type="application/pdf")
    assert r.status_code == 400
    assert storage.objects == {}


def test_upload_multiple(client, make_user, storage):
    _, headers = make_user("batch@example.com")
    files = [
        ("files", ("a.txt", b"first", "text/plain")),
        ("files", ("b.png", b"\x89PNG", "image/png")),
    ]
    r = client.post("/api/v1/files/upload/multiple", files=files, headers=headers)
    assert r.status_code == 201
    assert [f["original_name"] for f in r.json()["data"]] == ["a.txt", "b.png"]
    assert len(storage.objects) == 2


def test_upload_multiple_is_all_or_nothing(client, make_user, storage):
    _, headers = make_user("batch2@example.com")
    files = [
        ("files", ("a.txt", b"first", "text/plain")),
        ("files", ("b.txt", b"", "text/plain")),
    ]
    r = client.post("/api/v1/files/upload/multiple", files=files, headers=headers)
    assert r.status_code == 400
    assert storage.objects == {}


def test_list_info_stats_and_delete(client, make_user, make_admin, storage):
    _, owner = make_user("keeper@example.com")
    _, other = make_user("snoop@example.com")
    _, admin = make_admin()

    first = _upload(client, owner, data=b"1234").json()["data"]
    _upload(client, owner, name="pic.png", data=b"12345678", content_type="image/png")
    _upload(client, other, name="theirs.txt")

    r = client.get("/api/v1/files/list", headers=owner)
    assert r.status_code == 200
    assert r.json()["pagination"]["total"] == 2

    r = client.get("/api/v1/files/stats", headers=owner)
    stats = r.json()["data"]
    assert stats["total_files"] == 2
    assert stats["total_size"] == 12
    assert stats["type_distribution"] == {"text/plain": 1, "image/png": 1}

    assert client.get(f"/api/v1/files/info/{first['id']}", headers=owner).status_code == 200
    assert client.get(f"/api/v1/files/info/{first['id']}", headers=other).status_code == 403
    assert client.delete(f"/api/v1/files/{first['id']}", headers=other).status_code == 403
    assert client.get("/api/v1/files/info/does-not-exist", headers=owner).status_code == 404

    assert client.get("/api/v1/files/admin/list", headers=owner).status_code == 403
    r = client.get("/api/v1/files/admin/list", headers=admin)
    assert r.json()["pagination"]["total"] == 3
    r = client.get("/api/v1/files/admin/stats", headers=admin)
    assert r.json()["data"]["total_files"] == 3

    r = client.delete(f"/api/v1/files/{first['id']}", headers=owner)
    assert r.status_code == 200
    assert first["key"] not in storage.objects
    assert client.get(f"/api/v1/files/download/{first['key']}").status_code == 404


def test_delete_alias_route(client, make_user, make_admin):
    _, owner = make_user("alias@example.com")
    _, admin = make_admin()
    record = _upload(client, owner).json()["data"]
    r = client.delete(f"/api/v1/files/delete/{record['id']}", headers=admin)
    assert r.status_code == 200
    assert client.get(f"/api/v1/files/info/{record['id']}", headers=owner).status_code == 404
