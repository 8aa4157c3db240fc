"""
Tests for the public pages, visit tracking and the admin dashboard
"""
from datetime import date

from services.analytics_service import AnalyticsService, daily_series, empty_series


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


# Series


def test_empty_series_is_last_seven_days():
    points = empty_series(date(2024, 3, 10))

    assert [p.date for p in points] == [
        "2024-03-04", "2024-03-05", "2024-03-06", "2024-03-07", "2024-03-08", "2024-03-09", "2024-03-10",
    ]
    assert points[-1].day_name == "Sun"
    assert all(p.value == 0 for p in points)


def test_daily_series_uses_backend_stats():
    analytics = {"daily_stats": [{"date": "2024-03-09", "site_visits": 4}, {"date": "2024-03-10"}]}

    points = daily_series(analytics, "site_visits")

    assert [(p.date, p.value) for p in points] == [("2024-03-09", 4), ("2024-03-10", 0)]
    assert points[0].day_name == "Sat"


def test_daily_series_falls_back_to_zero_week():
    assert len(daily_series(None, "site_visits", date(2024, 3, 10))) == 7
    assert len(daily_series({"daily_stats": []}, "site_visits")) == 7


# Tracking


async def test_legacy_counters_respect_cooldowns(backend, api, content):
    backend.add("POST", "/api/counter", json={})
    backend.add("POST", "/api/projectviews", json={})
    clock = FakeClock()
    analytics = AnalyticsService(api, content, clock=clock)

    assert await analytics.track_site_visit() is True
    clock.now += 0.5
    assert await analytics.track_site_visit() is False
    clock.now += 0.6
    assert await analytics.track_site_visit() is True

    assert await analytics.track_project_view_legacy() is True
    clock.now += 2.9
    assert await analytics.track_project_view_legacy() is False
    clock.now += 0.2
    assert await analytics.track_project_view_legacy() is True

    assert len(backend.calls("POST", "/api/counter")) == 2
    assert len(backend.calls("POST", "/api/projectviews")) == 2


async def test_cooldowns_are_kept_per_visitor(backend, api, content):
    backend.add("POST", "/api/counter", json={})
    backend.add("POST", "/api/projectviews", json={})
    analytics = AnalyticsService(api, content, clock=FakeClock())

    assert await analytics.track_site_visit("10.0.0.1") is True
    assert await analytics.track_site_visit("10.0.0.2") is True
    assert await analytics.track_site_visit("10.0.0.1") is False
    assert await analytics.track_project_view_legacy("10.0.0.1") is True
    assert await analytics.track_project_view_legacy("10.0.0.2") is True

    assert len(backend.calls("POST", "/api/counter")) == 2
    assert len(backend.calls("POST", "/api/projectviews")) == 2


async def test_stale_visitors_are_forgotten(backend, api, content, monkeypatch):
    monkeypatch.setattr("services.analytics_service.MAX_TRACKED_VISITORS", 3)
    backend.add("POST", "/api/counter", json={})
    clock = FakeClock()
    analytics = AnalyticsService(api, content, clock=clock)

    for visitor in ("a", "b", "c"):
        await analytics.track_site_visit(visitor)
    clock.now += 10
    await analytics.track_site_visit("d")

    assert list(analytics._last_hit) == ["site_visit:d"]


async def test_tracking_never_raises(backend, api, content):
    backend.down = True
    analytics = AnalyticsService(api, content)

    assert await analytics.track_page_visit("/works", 3) is False
    assert await analytics.track_project_view("1", "works") is False
    assert await analytics.track_post_view("2") is False


async def test_dashboard_stats_fallback(backend, api, content):
    backend.add("GET", "/api/v1/analytics/all", status=500, json={"error": "down"})
    analytics = AnalyticsService(api, content)

    stats = await analytics.fetch_dashboard_stats()
    visits = await analytics.fetch_visits(date(2024, 3, 10))

    assert stats.total_visits == 0
    assert stats.analytics is None
    assert len(visits) == 7
    assert visits[0] == {"date": "2024-03-04", "dayName": "Mon", "visits": 0}


async def test_non_numeric_analytics_read_as_zero(backend, api, content):
    backend.add("GET", "/api/v1/analytics/all", json={
        "visits": "n/a",
        "project_view": None,
        "blog_views": {"total": 3},
        "daily_stats": [{"date": "2024-03-10", "site_visits": "n/a", "project_views": "7"}],
    })
    analytics = AnalyticsService(api, content)

    stats = await analytics.fetch_dashboard_stats()
    visits = await analytics.fetch_visits()
    views = await analytics.fetch_project_views()

    assert (stats.total_visits, stats.total_project_views, stats.total_blog_views) == (0, 0, 0)
    assert visits[0]["visits"] == 0
    assert views[0]["views"] == 7


async def test_load_dashboard(backend, api, content):
    backend.add("GET", "/api/v1/analytics/all", json={
        "visits": 120,
        "project_view": 40,
        "blog_views": 7,
        "daily_stats": [{"date": "2024-03-10", "site_visits": 12, "project_views": 3}],
    })
    backend.add("GET", "/api/v1/projects", json={"projects": [
        {"id": 1, "title": "Older", "createdAt": "2024-01-01T00:00:00Z"},
        {"id": 2, "title": "Newest", "createdAt": "2024-03-01T00:00:00Z"},
        {"id": 3, "title": "Undated"},
    ]})
    backend.add("GET", "/api/v1/skills", json={"skills": [{"id": 1, "skill": "Go", "category": "Backend"}]})
    analytics = AnalyticsService(api, content)

    dashboard = await analytics.load_dashboard()

    assert dashboard.latest_project["title"] == "Newest"
    assert dashboard.projects_count == 3
    assert dashboard.skills_count == 1
    assert dashboard.total_visits == 120
    assert dashboard.total_project_views == 40
    assert dashboard.total_blog_views == 7
    assert dashboard.visits == [{"date": "2024-03-10", "dayName": "Sun", "visits": 12}]
    assert dashboard.views == [{"date": "2024-03-10", "dayName": "Sun", "views": 3}]


def test_dashboard_endpoint_with_garbled_counters(admin_client, backend):
    backend.add("GET", "/api/v1/analytics/all", json={"visits": "many", "daily_stats": [{"date": "x", "site_visits": "?"}]})
    backend.add("GET", "/api/v1/projects", json={"projects": []})
    backend.add("GET", "/api/v1/skills", json={"skills": []})

    response = admin_client.get("/admin")

    assert response.status_code == 200
    assert response.json()["data"]["total_visits"] == 0


def test_dashboard_endpoint(admin_client, backend):
    backend.add("GET", "/api/v1/projects", json={"projects": []})
    backend.add("GET", "/api/v1/skills", json={"skills": []})

    response = admin_client.get("/admin")

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["latest_project"] is None
    assert len(data["visits"]) == 7
    assert len(data["views"]) == 7


# Public pages


def test_home_page(anon_client, backend):
    backend.add("GET", "/api/v1/projects/latest", json={"projects": [
        {"id": i, "title": f"P{i}"} for i in range(5)
    ]})
    backend.add("GET", "/api/v1/skills", json={"skills": [{"id": 1, "skill": "Go", "category": "Backend"}]})

    response = anon_client.get("/")

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["owner"] == "Test Owner"
    assert len(data["projects"]) == 3
    assert data["skills"][0]["skill"] == "Go"


def test_public_pages_survive_backend_outage(anon_client, backend):
    backend.down = True

    for path in ("/", "/about", "/works", "/blog"):
        response = anon_client.get(path)
        assert response.status_code == 200
        assert response.json()["ok"] is True


def test_about_groups_skills(anon_client, backend):
    backend.add("GET", "/api/v1/skills", json={"skills": [
        {"id": 1, "skill": "Go", "category": "Backend"},
        {"id": 2, "skill": "Vue", "category": "Frontend"},
        {"id": 3, "skill": "Loose"},
    ]})

    categories = anon_client.get("/about").json()["data"]["categories"]

    assert [c["category"] for c in categories] == ["Backend", "Frontend"]


def test_blog_post_page_renders_markdown(anon_client, backend):
    backend.add("GET", "/api/v1/blog/posts/hello", json={"post": {
        "id": 1, "slug": "hello", "title": "Hello", "content": "# Title\n\ntext",
    }})

    response = anon_client.get("/blog/hello")

    assert response.status_code == 200
    assert "<h1>Title</h1>" in response.json()["data"]["post"]["html"]
    assert anon_client.get("/blog/missing").status_code == 404


def test_blog_page_search_and_tags(anon_client, backend):
    backend.add("GET", "/api/v1/blog/posts", json={"posts": [
        {"id": 1, "slug": "a", "title": "Python tips", "tags": ["python"]},
        {"id": 2, "slug": "b", "title": "Go tips", "tags": ["go"]},
    ]})
    backend.add("GET", "/api/v1/blog/tags", json={"tags": ["python", "go"]})

    data = anon_client.get("/blog", params={"q": "tips", "tag": "go"}).json()["data"]

    assert [p["slug"] for p in data["items"]] == ["b"]
    assert data["tags"] == ["go", "python"]


def test_contacts(anon_client):
    data = anon_client.get("/contacts").json()["data"]

    assert data == {"owner": "Test Owner", "email": "owner@example.com", "discord": "owner#0001"}


def test_track_visit_posts_page_and_legacy_counter(anon_client, backend):
    backend.add("POST", "/api/v1/analytics/visit", json={})
    backend.add("POST", "/api/counter", json={})

    response = anon_client.post("/api/track/visit", json={"page": "/works", "duration": 12})

    assert response.json()["data"]["tracked"] is True
    sent = backend.json_of(backend.calls("POST", "/api/v1/analytics/visit")[0])
    assert sent == {"page": "/works", "duration": 12}
    assert len(backend.calls("POST", "/api/counter")) == 1


def test_admin_pages_are_not_tracked(anon_client, backend):
    response = anon_client.post("/api/track/visit", json={"page": "/admin/projects"})

    assert response.json()["data"]["tracked"] is False
    assert backend.calls("POST") == []


def test_track_project_view(anon_client, backend):
    backend.add("POST", "/api/v1/projects/4/views", json={})
    backend.add("POST", "/api/projectviews", json={})

    response = anon_client.post("/api/track/projects/4", json={"source": "works"})

    assert response.json()["data"]["tracked"] is True
    assert backend.json_of(backend.calls("POST", "/api/v1/projects/4/views")[0]) == {"source": "works"}


def test_legacy_counters_count_each_visitor(anon_client, backend):
    backend.add("POST", "/api/v1/analytics/visit", json={})
    backend.add("POST", "/api/counter", json={})
    backend.add("POST", "/api/v1/projects/4/views", json={})
    backend.add("POST", "/api/projectviews", json={})

    for visitor in ("browser-a", "browser-b"):
        anon_client.post("/api/track/visit", json={"page": "/", "visitor_id": visitor})
        anon_client.post("/api/track/projects/4", json={"visitor_id": visitor})

    assert len(backend.calls("POST", "/api/counter")) == 2
    assert len(backend.calls("POST", "/api/projectviews")) == 2
    sent = backend.json_of(backend.calls("POST", "/api/v1/analytics/visit")[0])
    assert "visitor_id" not in sent
