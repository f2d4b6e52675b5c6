async def test_generate_png(client):
    resp = await client.get("/api/qr/generate", params={"url": "https://safetap.cl/s/ABC2345"})

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert resp.headers["content-disposition"].startswith('attachment; filename="SafeTap-qr-')
    assert resp.headers["content-disposition"].endswith('.png"')
    assert resp.content.startswith(b"\x89PNG")


async def test_generate_svg(client):
    resp = await client.get(
        "/api/qr/generate", params={"url": "https://safetap.cl/s/ABC2345", "format": "svg", "size": 200, "dpi": 150}
    )

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("image/svg+xml")
    assert b"<svg" in resp.content


async def test_missing_url_is_400(client):
    resp = await client.get("/api/qr/generate")

    assert resp.status_code == 400
    assert resp.json()["detail"] == "El parámetro url es obligatorio"


async def test_unknown_format_is_400(client):
    resp = await client.get("/api/qr/generate", params={"url": "https://safetap.cl/s/ABC2345", "format": "gif"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "El formato debe ser png o svg"
