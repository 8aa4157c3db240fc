"""
Tests for markdown rendering, frontmatter validation, import and export
"""
from datetime import date

import frontmatter

from services.markdown_service import import_template, parse_document, render_markdown

VALID_POST = b"""---
title: Hello Markdown
excerpt: A short intro
tags: [python, web]
author: Test Owner
publishedAt: 2024-01-31
slug: hello-markdown
---
# Hello

Some *text*.
"""

UNTITLED_POST = b"""---
excerpt: No title here
---
Body only.
"""


def test_render_markdown_fenced_code_and_tables():
    html = render_markdown("```\ncode\n```\n\n| a | b |\n|---|---|\n| 1 | 2 |")

    assert "<code>" in html
    assert "<table>" in html
    assert render_markdown(None) == ""


def test_parse_document_valid():
    document = parse_document(VALID_POST.decode())

    assert document.is_valid
    assert document.metadata["title"] == "Hello Markdown"
    assert "<h1>Hello</h1>" in document.html
    assert document.to_dict()["frontmatter"]["publishedAt"] == "2024-01-31"


def test_missing_title_is_an_error():
    document = parse_document(UNTITLED_POST.decode(), default_author="Test Owner")

    assert not document.is_valid
    assert [issue.message for issue in document.errors] == ["Title is required"]
    warnings = [issue.message for issue in document.issues if issue.type == "warning"]
    assert 'Author will default to "Test Owner"' in warnings
    assert "Tags array is recommended" in warnings


def test_bad_date_and_slug_are_errors():
    document = parse_document("---\ntitle: T\npublishedAt: 31/01/2024\nslug: Not A Slug\n---\nbody")

    messages = [issue.message for issue in document.errors]
    assert "publishedAt should be in YYYY-MM-DD format" in messages
    assert "Slug should contain only lowercase letters, numbers, and hyphens" in messages


def test_broken_frontmatter_is_reported():
    document = parse_document("---\ntitle: [unclosed\n---\nbody")

    assert not document.is_valid
    assert document.errors[0].message.startswith("Failed to parse content")


def test_import_template_is_a_valid_document():
    text = import_template("Test Owner", today=date(2024, 5, 1))

    post = frontmatter.loads(text)
    assert post["author"] == "Test Owner"
    assert parse_document(text).is_valid


# Endpoints


def test_import_without_title_is_rejected_locally(admin_client, backend):
    response = admin_client.post(
        "/admin/blog/import",
        files={"file": ("untitled.md", UNTITLED_POST, "text/markdown")},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Title is required"
    assert backend.calls("POST", "/api/v1/blog/import-md") == []


def test_import_valid_post(admin_client, backend):
    backend.add("POST", "/api/v1/blog/import-md", status=201, json={
        "message": "MD file imported successfully",
        "post": {"id": 3, "slug": "hello-markdown", "title": "Hello Markdown"},
    })

    response = admin_client.post(
        "/admin/blog/import",
        files={"file": ("hello.md", VALID_POST, "text/markdown")},
    )

    assert response.status_code == 201
    assert response.json()["data"]["post"]["slug"] == "hello-markdown"
    sent = backend.json_of(backend.calls("POST", "/api/v1/blog/import-md")[0])
    assert sent["filename"] == "hello.md"
    assert sent["content"] == VALID_POST.decode()


def test_import_rejects_non_markdown_and_multiple_files(admin_client, backend):
    wrong_type = admin_client.post("/admin/blog/import", files={"file": ("notes.txt", b"hi", "text/plain")})
    two_files = admin_client.post(
        "/admin/blog/import",
        files=[("file", ("a.md", VALID_POST, "text/markdown")), ("file", ("b.md", VALID_POST, "text/markdown"))],
    )

    assert wrong_type.json()["message"] == "Please select a valid .md or .markdown file"
    assert two_files.json()["message"] == "Please select only one file at a time"
    assert backend.calls("POST", "/api/v1/blog/import-md") == []


def test_import_backend_details_are_surfaced(admin_client, backend):
    backend.add("POST", "/api/v1/blog/import-md", status=409, json={
        "error": "Import failed",
        "details": "Slug already exists",
    })

    response = admin_client.post("/admin/blog/import", files={"file": ("hello.md", VALID_POST, "text/markdown")})

    assert response.status_code == 409
    assert response.json()["message"] == "Slug already exists"


def test_preview_shows_issues_without_importing(admin_client, backend):
    response = admin_client.post(
        "/admin/blog/import/preview",
        files={"file": ("untitled.md", UNTITLED_POST, "text/markdown")},
    )

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["valid"] is False
    assert data["filename"] == "untitled.md"
    assert "<p>Body only.</p>" in data["html"]
    assert backend.calls("POST", "/api/v1/blog/import-md") == []


def test_template_download(admin_client):
    response = admin_client.get("/admin/blog/import/template")

    assert response.status_code == 200
    assert 'filename="blog-post-template.md"' in response.headers["content-disposition"]
    assert "author: Test Owner" in response.text


def test_export_uses_content_disposition_filename(admin_client, backend):
    backend.add(
        "GET",
        "/api/v1/blog/export-md/hello",
        content=b"---\ntitle: Hello\n---\nbody",
        headers={"Content-Disposition": 'attachment; filename="2024-hello.md"'},
    )

    response = admin_client.get("/admin/blog/hello/export")

    assert response.status_code == 200
    assert 'filename="2024-hello.md"' in response.headers["content-disposition"]
    assert response.content.startswith(b"---")


def test_export_falls_back_to_slug_filename(admin_client, backend):
    backend.add("GET", "/api/v1/blog/export-md/hello", content=b"body")

    response = admin_client.get("/admin/blog/hello/export")

    assert 'filename="hello.md"' in response.headers["content-disposition"]
