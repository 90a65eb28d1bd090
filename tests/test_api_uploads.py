"""End-to-end tests for the upload routes and static file serving."""
import re

from tests.images import SVG_DOCUMENT, gif_bytes, jpeg_bytes, png_bytes


class TestUploadAPI:
    def test_single_file_field(self, client, storage_root):
        content = png_bytes()
        resp = client.post(
            "/upload", files={"file": ("photo 1.png", content, "image/png")}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert set(body) == {"success", "message", "file_paths", "file_urls"}
        assert body["success"] is True
        assert body["message"] == "Successfully uploaded 1 file(s)"
        (rel,) = body["file_paths"]
        assert re.fullmatch(r"photo_1_\d+\.png", rel)
        assert body["file_urls"] == [f"http://localhost:5220/storage/{rel}"]
        assert (storage_root / rel).read_bytes() == content

    def test_bracketed_images_field(self, client):
        resp = client.post(
            "/upload",
            files=[
                ("images[]", ("one.gif", gif_bytes(), "image/gif")),
                ("images[]", ("two.gif", gif_bytes(), "image/gif")),
            ],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Successfully uploaded 2 file(s)"
        assert [p.split("_")[0] for p in body["file_paths"]] == ["one", "two"]

    def test_image_field(self, client):
        resp = client.post(
            "/upload", files={"image": ("pic.jpg", jpeg_bytes(), "image/jpeg")}
        )
        assert resp.status_code == 200
        assert resp.json()["success"] is True

    def test_images_alias_route(self, client):
        resp = client.post(
            "/upload/images", files={"file": ("a.png", png_bytes(), "image/png")}
        )
        assert resp.status_code == 200

    def test_sub_dir_form_field(self, client, storage_root):
        resp = client.post(
            "/upload",
            data={"sub_dir": "avatars"},
            files={"file": ("a.png", png_bytes(), "image/png")},
        )
        (rel,) = resp.json()["file_paths"]
        assert rel.startswith("avatars/")
        assert (storage_root / rel).is_file()

    def test_max_size_form_field(self, client):
        resp = client.post(
            "/upload",
            data={"max_size": "1kb"},
            files={"file": ("big.png", png_bytes(4096), "image/png")},
        )
        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "message": "file big.png exceeds maximum size of 1.0 KB",
        }

    def test_out_of_range_max_size_ignored(self, client):
        resp = client.post(
            "/upload",
            data={"max_size": "1e300gb"},
            files={"file": ("a.png", png_bytes(), "image/png")},
        )
        assert resp.status_code == 200
        assert resp.json()["success"] is True

    def test_nul_sub_dir_rejected(self, client):
        resp = client.post(
            "/upload",
            data={"sub_dir": "a\x00b"},
            files={"file": ("a.png", png_bytes(), "image/png")},
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid sub directory"

    def test_no_file_fields(self, client):
        resp = client.post("/upload", data={"sub_dir": "avatars"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "Failed to get files from request"
        assert body["error"] == "no files found in request"
        assert "file_paths" not in body
        assert "file_urls" not in body

    def test_non_multipart_body(self, client):
        resp = client.post("/upload", json={"file": "a.png"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Failed to get files from request"

    def test_disguised_file_rejected(self, client, storage_root):
        resp = client.post(
            "/upload", files={"file": ("evil.png", b"<html><body>hi</body></html>", "image/png")}
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "file evil.png has disallowed MIME type: text/html"
        assert list(storage_root.iterdir()) == []

    def test_disallowed_extension(self, client):
        resp = client.post(
            "/upload", files={"file": ("notes.txt", b"hello", "text/plain")}
        )
        assert resp.status_code == 400
        assert resp.json()["message"].startswith(
            "file notes.txt has disallowed extension. Allowed: jpg, jpeg, png"
        )

    def test_get_not_allowed(self, client):
        resp = client.get("/upload")
        assert resp.status_code == 405
        body = resp.json()
        assert body["code"] == "method_not_allowed"
        assert "request_id" in body

    def test_request_id_header(self, client):
        resp = client.post(
            "/upload",
            files={"file": ("a.png", png_bytes(), "image/png")},
            headers={"X-Request-Id": "upload-req-1"},
        )
        assert resp.headers["x-request-id"] == "upload-req-1"


class TestStaticFiles:
    def test_uploaded_file_is_served(self, client):
        content = png_bytes()
        rel = client.post(
            "/upload", files={"file": ("a.png", content, "image/png")}
        ).json()["file_paths"][0]
        resp = client.get(f"/storage/{rel}")
        assert resp.status_code == 200
        assert resp.content == content
        assert resp.headers["X-Content-Type-Options"] == "nosniff"

    def test_stored_svg_is_sandboxed(self, client):
        rel = client.post(
            "/upload", files={"file": ("logo.svg", SVG_DOCUMENT, "image/svg+xml")}
        ).json()["file_paths"][0]
        resp = client.get(f"/storage/{rel}")
        assert resp.status_code == 200
        assert "sandbox" in resp.headers["Content-Security-Policy"]

    def test_missing_file(self, client):
        resp = client.get("/storage/nope.png")
        assert resp.status_code == 404


class TestOperationalEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_ready(self, client):
        resp = client.get("/health/ready")
        assert resp.status_code == 200
        assert resp.json()["checks"]["storage"] == "ok"

    def test_metrics_count_uploads(self, client):
        client.post("/upload", files={"file": ("a.png", png_bytes(), "image/png")})
        client.post("/upload", data={})
        text = client.get("/metrics").text
        assert 'image_uploads_total{outcome="success"}' in text
        assert 'image_uploads_total{outcome="rejected"}' in text
        assert "image_upload_files_total" in text
