# backend/modules/analytics/tests/test_bi_api.py

import pytest
from fastapi.testclient import TestClient


def _record(entity_id, quantity, unit_revenue, unit_cost, timestamp, category="Beverages"):
    return {
        "entityId": entity_id,
        "entityName": entity_id.title(),
        "category": category,
        "quantity": quantity,
        "unitRevenue": unit_revenue,
        "unitCost": unit_cost,
        "timestamp": timestamp,
    }


@pytest.fixture
def march_records():
    return [
        _record("latte", 70, 10, 4, "2024-03-02T09:00:00"),
        _record("bagel", 20, 10, 3, "2024-03-09T10:00:00", "Bakery"),
        _record("muffin", 10, 10, 12, "2024-03-16T11:00:00", "Bakery"),
    ]


class TestBIAnalyticsAPI:
    """Test cases for the BI analytics endpoints"""

    def test_health_check(self, client: TestClient):
        """Test BI analytics service health check"""
        response = client.get("/analytics/bi/health")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert data["service"] == "bi-analytics"
        assert "timestamp" in data
        assert data["version"] == "1.0.0"

    def test_abc_analysis(self, client: TestClient, window_request, march_records):
        response = client.post(
            "/analytics/bi/abc-analysis", json={**window_request, "records": march_records}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["analysis"] == "abc"
        data = body["data"]
        assert data["totalProducts"] == 3
        assert data["totalSales"] == pytest.approx(1000)
        assert [p["abcCategory"] for p in data["products"]] == ["A", "B", "C"]
        assert data["summary"]["categoryA"]["count"] == 1

    def test_empty_window_is_200(self, client: TestClient, window_request):
        """No sales in range is a normal response with empty structures"""
        for path in ("abc-analysis", "profit-analysis", "trends", "kpis"):
            response = client.post(f"/analytics/bi/{path}", json={**window_request, "records": []})

            assert response.status_code == 200, path
            assert response.json()["status"] == "ok"

    def test_profit_analysis(self, client: TestClient, window_request, march_records):
        response = client.post(
            "/analytics/bi/profit-analysis",
            json={**window_request, "groupBy": "item", "records": march_records},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalRevenue"] == pytest.approx(1000)
        assert data["totalProfit"] == pytest.approx(540)
        assert [i["entityId"] for i in data["analysis"]] == ["latte", "bagel", "muffin"]
        assert data["analysis"][-1]["profitMargin"] == pytest.approx(-20)

    def test_trends(self, client: TestClient, window_request, march_records):
        response = client.post(
            "/analytics/bi/trends",
            json={
                **window_request,
                "metric": "sales_volume",
                "granularity": "week",
                "forecastHorizon": 3,
                "records": march_records,
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["metric"] == "sales_volume"
        assert len(data["dataPoints"]) == 3
        assert len(data["forecast"]) == 3
        for point in data["forecast"]:
            assert point["lowerBound"] <= point["value"] <= point["upperBound"]
        assert data["trend"]["direction"] == "down"
        assert isinstance(data["insights"], list)

    def test_kpis(self, client: TestClient, window_request, march_records):
        response = client.post(
            "/analytics/bi/kpis",
            json={
                **window_request,
                "records": march_records,
                "previousRecords": [_record("latte", 50, 10, 4, "2024-02-10T09:00:00")],
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalRevenue"]["value"] == pytest.approx(1000)
        assert data["totalRevenue"]["status"] == "GOOD"
        assert data["previousWindowEnd"] == "2024-02-29"

    def test_reversed_window_is_400(self, client: TestClient):
        response = client.post(
            "/analytics/bi/abc-analysis",
            json={"windowStart": "2024-03-31", "windowEnd": "2024-03-01", "records": []},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "error"
        assert body["analysis"] == "abc"
        assert body["error"]["kind"] == "validation_error"

    def test_unknown_granularity_is_400(self, client: TestClient, window_request):
        response = client.post(
            "/analytics/bi/trends",
            json={**window_request, "granularity": "hour", "records": []},
        )

        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "validation_error"

    def test_negative_quantity_is_400(self, client: TestClient, window_request):
        response = client.post(
            "/analytics/bi/abc-analysis",
            json={
                **window_request,
                "records": [_record("latte", -1, 10, 4, "2024-03-02T09:00:00")],
            },
        )

        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "validation_error"
