"""
API tests for books, spreads, photos, auto-generation, rendering and download.

Run with: pytest tests/test_api_books.py -v
"""
from datetime import date

import pytest

from conftest import OTHER_ID, headers_for


@pytest.fixture
def book(client, owner_headers, household):
    r = client.post("/books", json={"title": "2024 Book", "date_start": "2024-01-01", "date_end": "2024-12-31"},
                    headers=owner_headers)
    assert r.status_code == 201, r.text
    return r.json()


def add_entry(client, headers, text, day, said_by=None):
    r = client.post("/entries", json={"text": text, "entry_date": day, "said_by": said_by}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


class TestBooks:

    def test_create_defaults_and_pages(self, client, owner_headers, book):
        assert book["size"] == "6x9"
        assert book["theme"] == "classic"
        assert book["cover_style"] == "linen"
        assert book["status"] == "draft"
        assert book["design_mode"] == "manual"
        assert "pdf_path" not in book

        pages = client.get(f"/books/{book['id']}/pages", headers=owner_headers).json()
        assert [p["page_number"] for p in pages] == list(range(1, 25))
        assert all(p["left_content"] == [] and p["right_content"] == [] for p in pages)

    def test_page_count_choice(self, client, owner_headers, household):
        body = {"date_start": "2024-01-01", "date_end": "2024-06-30", "page_count": 40}
        r = client.post("/books", json=body, headers=owner_headers)
        assert r.status_code == 201
        assert len(client.get(f"/books/{r.json()['id']}/pages", headers=owner_headers).json()) == 40

        r = client.post("/books", json={**body, "page_count": 30}, headers=owner_headers)
        assert r.status_code == 400

    def test_dates_required_and_ordered(self, client, owner_headers, household):
        r = client.post("/books", json={"date_start": "2024-01-01"}, headers=owner_headers)
        assert r.status_code == 400
        r = client.post("/books", json={"date_start": "2024-05-01", "date_end": "2024-01-01"},
                        headers=owner_headers)
        assert r.status_code == 400

    def test_list_get_patch(self, client, owner_headers, book):
        assert [b["id"] for b in client.get("/books", headers=owner_headers).json()] == [book["id"]]

        r = client.patch(f"/books/{book['id']}", json={"theme": "playful", "dedication": "For you"},
                         headers=owner_headers)
        assert r.status_code == 200
        assert r.json()["theme"] == "playful"
        assert r.json()["dedication"] == "For you"

        r = client.patch(f"/books/{book['id']}", json={"status": "shipped"}, headers=owner_headers)
        assert r.status_code == 422

    def test_other_household_gets_404(self, client, book):
        other = headers_for(OTHER_ID)
        client.post("/households", json={"name": "Others"}, headers=other)
        assert client.get(f"/books/{book['id']}", headers=other).status_code == 404
        assert client.get(f"/books/{book['id']}/pages", headers=other).status_code == 404
        assert client.delete(f"/books/{book['id']}", headers=other).status_code == 404

    def test_delete(self, client, owner_headers, book):
        assert client.delete(f"/books/{book['id']}", headers=owner_headers).status_code == 200
        assert client.get(f"/books/{book['id']}", headers=owner_headers).status_code == 404


class TestPages:

    def test_upsert_update_delete(self, client, owner_headers, book):
        base = f"/books/{book['id']}/pages"

        r = client.post(base, json={"left_layout": "photo-1-full-bleed"}, headers=owner_headers)
        assert r.status_code == 400

        r = client.post(base, json={"page_number": 3, "right_layout": "quote-1-centered",
                                    "right_content": [{"id": "e1", "type": "quote", "slotId": "right-quote-1"}]},
                        headers=owner_headers)
        assert r.status_code == 200
        page = r.json()
        assert page["page_number"] == 3
        assert page["right_content"] == [{"id": "e1", "type": "quote", "slotId": "right-quote-1"}]

        r = client.post(base, json={"page_number": 3, "left_layout": "nope"}, headers=owner_headers)
        assert r.status_code == 400

        r = client.put(base, json={"left_layout": "photo-2-stack"}, headers=owner_headers)
        assert r.status_code == 400

        r = client.put(base, json={"page_id": page["id"], "left_layout": "photo-2-stack"}, headers=owner_headers)
        assert r.status_code == 200
        assert r.json()["left_layout"] == "photo-2-stack"
        assert r.json()["right_layout"] == "quote-1-centered"

        r = client.delete(base, params={"page_id": page["id"]}, headers=owner_headers)
        assert r.status_code == 200
        numbers = [p["page_number"] for p in client.get(base, headers=owner_headers).json()]
        assert 3 not in numbers

        assert client.delete(base, params={"page_id": "missing"}, headers=owner_headers).status_code == 404

    def test_apply_layout_fills_unused_assets(self, client, owner_headers, book):
        base = f"/books/{book['id']}"
        e1 = add_entry(client, owner_headers, "first", "2024-01-01")
        e2 = add_entry(client, owner_headers, "second", "2024-02-01")
        e3 = add_entry(client, owner_headers, "third", "2024-03-01")
        add_entry(client, owner_headers, "out of range", "2023-03-01")

        photos = []
        for name in ("a", "b", "c"):
            r = client.post(f"{base}/photos", json={"url": f"https://cdn/{name}.jpg", "filename": f"{name}.jpg",
                                                    "width": 400, "height": 300}, headers=owner_headers)
            assert r.status_code == 201
            photos.append(r.json())

        pages = client.get(f"{base}/pages", headers=owner_headers).json()
        first, second = pages[1], pages[2]

        r = client.post(f"{base}/pages/{first['id']}/layout", json={"layout_id": "photo-1-full-bleed"},
                        headers=owner_headers)
        assert r.status_code == 200
        spread = r.json()
        assert spread["left_layout"] == "photo-1-full-bleed"
        assert spread["right_layout"] == "quote-1-centered"
        assert len(spread["left_content"]) == 1
        assert [i["id"] for i in spread["right_content"]] == [e1["id"]]
        used_photo = spread["left_content"][0]["id"]

        r = client.post(f"{base}/pages/{second['id']}/layout", json={"layout_id": "photo-2-stack"},
                        headers=owner_headers)
        spread2 = r.json()
        placed = {i["id"] for i in spread2["left_content"]}
        assert used_photo not in placed
        assert len(placed) == 2
        assert [i["id"] for i in spread2["right_content"]] == [e2["id"], e3["id"]]

        r = client.post(f"{base}/pages/{first['id']}/layout", json={"layout_id": "quote-1-centered"},
                        headers=owner_headers)
        assert r.json()["left_layout"] == "photo-1-full-bleed"
        assert [i["id"] for i in r.json()["right_content"]] == [e1["id"]]

        r = client.post(f"{base}/pages/{first['id']}/layout", json={"layout_id": "bogus"}, headers=owner_headers)
        assert r.status_code == 400

        assert {p["id"] for p in photos} >= placed | {used_photo}

    def test_apply_layout_without_autofill(self, client, owner_headers, book):
        add_entry(client, owner_headers, "first", "2024-01-01")
        page = client.get(f"/books/{book['id']}/pages", headers=owner_headers).json()[0]
        r = client.post(f"/books/{book['id']}/pages/{page['id']}/layout",
                        json={"layout_id": "photo-1-full-bleed", "auto_fill": False}, headers=owner_headers)
        assert r.status_code == 200
        assert r.json()["left_content"] == []
        assert r.json()["right_content"] == []


class TestPhotos:

    def test_add_list_delete(self, client, owner_headers, book):
        base = f"/books/{book['id']}/photos"
        assert client.post(base, json={"url": "https://cdn/x.jpg"}, headers=owner_headers).status_code == 400

        photo = client.post(base, json={"url": "https://cdn/x.jpg", "filename": "x.jpg"},
                            headers=owner_headers).json()
        assert photo["width"] is None
        assert [p["id"] for p in client.get(base, headers=owner_headers).json()] == [photo["id"]]

        assert client.delete(base, params={"photo_id": "nope"}, headers=owner_headers).status_code == 404
        assert client.delete(base, params={"photo_id": photo["id"]}, headers=owner_headers).status_code == 200
        assert client.get(base, headers=owner_headers).json() == []

    def test_probe_fills_dimensions(self, client, owner_headers, book, monkeypatch):
        import routers.photos as photos_router

        async def fake_probe(url, timeout=20.0):
            return (640, 480)

        monkeypatch.setattr(photos_router, "probe_dimensions", fake_probe)
        r = client.post(f"/books/{book['id']}/photos",
                        json={"url": "https://cdn/y.jpg", "filename": "y.jpg", "probe": True},
                        headers=owner_headers)
        assert r.status_code == 201
        assert (r.json()["width"], r.json()["height"]) == (640, 480)


class TestAutoGenerate:

    def test_book_auto_generate(self, client, owner_headers, book):
        add_entry(client, owner_headers, "later", "2024-05-01")
        early = add_entry(client, owner_headers, "early", "2024-01-10")

        r = client.post(f"/books/{book['id']}/auto-generate", headers=owner_headers)
        assert r.status_code == 200
        body = r.json()
        assert body["book"]["design_mode"] == "auto"
        assert body["book"]["status"] == "draft"
        assert len(body["pages"]) == 3
        assert body["pages"][1]["left_content"] == [{"id": early["id"], "type": "quote"}]

    def test_book_auto_generate_without_entries(self, client, owner_headers, book):
        r = client.post(f"/books/{book['id']}/auto-generate", headers=owner_headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "No entries found for that date range."

    def test_year_book_created_then_reused(self, client, owner_headers, household):
        add_entry(client, owner_headers, "jazz", "2023-07-04")

        r = client.post("/books/auto-generate", json={"year": 2023}, headers=owner_headers)
        assert r.status_code == 200
        first = r.json()["book"]
        assert first["title"] == "2023 Family Quotes"
        assert first["date_start"] == "2023-01-01"
        assert first["date_end"] == "2023-12-31"

        r = client.post("/books/auto-generate", json={"year": 2023}, headers=owner_headers)
        assert r.json()["book"]["id"] == first["id"]
        assert len(client.get("/books", headers=owner_headers).json()) == 1

    def test_year_book_defaults_to_current_year(self, client, owner_headers, household):
        add_entry(client, owner_headers, "today", date.today().isoformat())
        r = client.post("/books/auto-generate", headers=owner_headers)
        assert r.status_code == 200
        assert r.json()["book"]["date_start"] == f"{date.today().year}-01-01"

    def test_year_without_entries(self, client, owner_headers, household):
        r = client.post("/books/auto-generate", json={"year": 1999}, headers=owner_headers)
        assert r.status_code == 400
        assert r.json()["detail"] == "No entries found for that year."


class TestRenderAndDownload:

    def test_download_before_render(self, client, owner_headers, book):
        r = client.get(f"/books/{book['id']}/download", headers=owner_headers)
        assert r.status_code == 404
        assert r.json()["detail"] == "PDF not available"

    def test_render_without_entries(self, client, owner_headers, book, pdf_dir):
        r = client.post(f"/books/{book['id']}/render", headers=owner_headers)
        assert r.status_code == 400
        assert client.get(f"/books/{book['id']}", headers=owner_headers).json()["status"] == "error"

    def test_render_and_download(self, client, owner_headers, book, pdf_dir, kids):
        add_entry(client, owner_headers, "Do ya like jazz?", "2024-03-01", kids["Zeke"]["id"])

        r = client.post(f"/books/{book['id']}/render", headers=owner_headers)
        assert r.status_code == 200, r.text
        body = r.json()
        assert body["pdf_url"] == f"/books/{book['id']}/download"
        assert body["book"]["status"] == "ready"
        assert list(pdf_dir.glob(f"books/{book['id']}/*.pdf"))

        r = client.get(f"/books/{book['id']}/download", headers=owner_headers)
        assert r.status_code == 200
        assert r.headers["content-type"] == "application/pdf"
        assert 'filename="2024-book.pdf"' in r.headers["content-disposition"]
        assert r.content.startswith(b"%PDF")

        client.delete(f"/books/{book['id']}", headers=owner_headers)
        assert not list(pdf_dir.glob(f"books/{book['id']}/*.pdf"))

    def test_render_designed_spreads(self, client, owner_headers, book, pdf_dir, monkeypatch):
        import core.book_render as book_render

        async def no_images(urls, timeout=20.0):
            return {}

        monkeypatch.setattr(book_render, "load_images", no_images)
        entry = add_entry(client, owner_headers, "The moon likes us", "2024-03-01")
        client.post(f"/books/{book['id']}/photos", json={"url": "https://cdn/p.jpg", "filename": "p.jpg"},
                    headers=owner_headers)
        page = client.get(f"/books/{book['id']}/pages", headers=owner_headers).json()[1]
        client.post(f"/books/{book['id']}/pages/{page['id']}/layout", json={"layout_id": "photo-1-wide-border"},
                    headers=owner_headers)

        r = client.post(f"/books/{book['id']}/render", headers=owner_headers)
        assert r.status_code == 200, r.text
        assert r.json()["book"]["status"] == "ready"
        assert entry["id"]
