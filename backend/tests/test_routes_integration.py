"""
Integration tests for the API routes.
"""
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from adperf.errors import StoreUnavailableError
from adperf.main import app
from adperf.routers.performance import default_window, get_performance_store


@pytest.fixture
def client(store):
    app.dependency_overrides[get_performance_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _upload(client, content, incremental=True):
    return client.post(
        "/api/performance/upload",
        files={"file": ("export.csv", content, "text/csv")},
        data={"incremental": "true" if incremental else "false"},
    )


class TestCoreRoutes:
    """Test core routes that remain in main.py"""

    def test_api_info(self, client):
        response = client.get("/api")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Ad Performance API"
        assert data["version"] == "0.1.0"

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"


class TestUploadRoute:
    """Test POST /api/performance/upload"""

    def test_upload_imports_rows(self, client, make_csv, csv_row):
        response = _upload(client, make_csv([csv_row(), csv_row(**{"Ad ID": "a2"})]))

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "imported"
        assert data["total_rows"] == 2
        assert data["written"] == 2

    def test_reupload_returns_400(self, client, make_csv, csv_row):
        content = make_csv([csv_row()])
        _upload(client, content)

        response = _upload(client, content)

        assert response.status_code == 400
        assert "No new rows" in response.json()["detail"]

    def test_full_refresh_reupload(self, client, make_csv, csv_row):
        content = make_csv([csv_row()])
        _upload(client, content)

        response = _upload(client, content, incremental=False)

        assert response.status_code == 200
        assert response.json()["written"] == 1

    def test_partial_import_lists_rejected_rows(self, client, make_csv, csv_row):
        response = _upload(client, make_csv([csv_row(), csv_row(**{"Campaign name": ""})]))

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "partially_imported"
        assert data["rejected_rows"] == [{"line_number": 3, "missing_fields": ["campaign_name"]}]

    def test_all_rows_rejected_returns_400_with_reasons(self, client, make_csv, csv_row):
        response = _upload(client, make_csv([csv_row(**{"Campaign ID": ""}), csv_row(**{"Ad name": ""})]))

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail.startswith("No valid rows")
        assert "line 2: missing campaign_id" in detail
        assert "line 3: missing ad_name" in detail

    def test_rejection_reasons_are_capped(self, client, make_csv, csv_row):
        rows = [csv_row(**{"Campaign ID": "", "Ad ID": f"a{i}"}) for i in range(12)]

        detail = _upload(client, make_csv(rows)).json()["detail"]

        assert "line 11: missing campaign_id" in detail
        assert "line 12:" not in detail
        assert detail.endswith("and 2 more")

    def test_malformed_upload_returns_400(self, client):
        response = _upload(client, b"\xff\xfe\xfa")

        assert response.status_code == 400
        assert "UTF-8" in response.json()["detail"]

    def test_store_unreachable_returns_503(self, client, store, make_csv, csv_row, monkeypatch):
        async def fail(*args, **kwargs):
            raise StoreUnavailableError("connection refused")

        monkeypatch.setattr(store, "upsert", fail)

        response = _upload(client, make_csv([csv_row()]))

        assert response.status_code == 503
        assert "connection refused" in response.json()["detail"]


class TestReadRoutes:
    """Test record, summary and dashboard routes"""

    @pytest.fixture(autouse=True)
    def seeded(self, client, make_csv, csv_row):
        rows = [
            csv_row(**{"Ad ID": "a1", "Day": "2024-03-01", "Amount spent (USD)": "100"}),
            csv_row(**{"Ad ID": "a2", "Day": "2024-03-02", "Amount spent (USD)": "40", "Campaign ID": "c2"}),
            csv_row(**{"Ad ID": "a3", "Day": "2024-03-03", "Amount spent (USD)": "10"}),
        ]
        assert _upload(client, make_csv(rows)).status_code == 200

    def test_records(self, client):
        response = client.get("/api/performance/records")

        assert response.status_code == 200
        assert [r["day"] for r in response.json()] == ["2024-03-03", "2024-03-02", "2024-03-01"]

    def test_records_filtered(self, client):
        response = client.get(
            "/api/performance/records",
            params={"start_date": "2024-03-01", "end_date": "2024-03-02", "campaign_ids": "c1, c9"},
        )

        assert [r["ad_id"] for r in response.json()] == ["a1"]

    def test_summary(self, client):
        data = client.get("/api/performance/summary").json()

        assert data["total_records"] == 3
        assert data["date_range"] == {"start": "2024-03-01", "end": "2024-03-03"}
        assert data["campaign_count"] == 2

    def test_dates(self, client):
        assert client.get("/api/performance/dates").json() == ["2024-03-03", "2024-03-02", "2024-03-01"]

    def test_dashboard(self, client):
        response = client.get(
            "/api/performance/dashboard",
            params={"start_date": "2024-03-01", "end_date": "2024-03-03", "sort_key": "spend"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["overview"]["total_spend"] == 150
        assert [c["campaign_id"] for c in data["campaigns"]] == ["c1", "c2"]
        assert len(data["daily"]) == 3
        assert [(p["platform"], p["total_spend"]) for p in data["platforms"]] == [("facebook", 150)]

    def test_dashboard_spend_bound_filters_daily(self, client):
        data = client.get(
            "/api/performance/dashboard",
            params={"start_date": "2024-03-01", "end_date": "2024-03-03", "spend_min": 20},
        ).json()

        assert [d["day"] for d in data["daily"]] == ["2024-03-02", "2024-03-01"]

    def test_dashboard_default_window_excludes_old_rows(self, client):
        data = client.get("/api/performance/dashboard").json()

        assert data["overview"]["total_spend"] == 0
        assert data["campaigns"] == []

    def test_dashboard_rejects_unknown_sort_key(self, client):
        response = client.get("/api/performance/dashboard", params={"sort_key": "clicks"})

        assert response.status_code == 422


def test_default_window():
    today = date(2024, 3, 15)

    assert default_window(today, 14) == ((today - timedelta(days=14)).isoformat(), "2024-03-15")
