"""Tests for pnlplan.web.routes.line_items - single-row edit routes."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from pnlplan.exceptions import InvalidRequestError, LineItemNotFoundError
from pnlplan.models import LineItem, RowType
from pnlplan.web.app import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def mock_db_session():
    """Mock database session with async context manager."""
    session = AsyncMock()

    async_cm = AsyncMock()
    async_cm.__aenter__.return_value = session
    async_cm.__aexit__.return_value = None

    return async_cm


@pytest.fixture
def line_item():
    return LineItem(
        id=40,
        branch_id=7,
        department="maintenance",
        year=2025,
        row_order=3,
        account_code="6100",
        account_name="Fuel",
        full_label="6100 Fuel",
        feb=12.5,
    )


class TestAddLineItem:
    """Tests for POST /api/pnl/add-line-item."""

    @patch("pnlplan.web.routes.line_items.add_line_item", new_callable=AsyncMock)
    @patch("pnlplan.web.routes.line_items.get_session")
    def test_add_line_item(self, mock_get_session, mock_add, client, mock_db_session, line_item):
        mock_get_session.return_value = mock_db_session
        mock_add.return_value = line_item

        response = client.post(
            "/api/pnl/add-line-item",
            json={
                "branchId": 7,
                "department": "maintenance",
                "year": 2025,
                "accountCode": "6100",
                "accountName": "Fuel",
                "insertBeforeId": 41,
            },
        )

        assert response.status_code == 200
        assert response.json()["lineItem"]["id"] == 40
        kwargs = mock_add.call_args.kwargs
        assert kwargs["insert_before_id"] == 41
        assert kwargs["row_type"] == RowType.DETAIL
        assert mock_add.call_args.args[2] == "Fuel"

    def test_add_line_item_requires_name(self, client):
        response = client.post(
            "/api/pnl/add-line-item",
            json={"branchId": 7, "department": "maintenance", "year": 2025},
        )

        assert response.status_code == 400
        assert "accountName" in response.json()["error"]


class TestDeleteAndReorder:
    """Tests for delete-line-item and reorder-row."""

    @patch("pnlplan.web.routes.line_items.delete_line_item", new_callable=AsyncMock)
    @patch("pnlplan.web.routes.line_items.get_session")
    def test_delete_line_item(self, mock_get_session, mock_delete, client, mock_db_session):
        mock_get_session.return_value = mock_db_session

        response = client.post("/api/pnl/delete-line-item", json={"lineItemId": 40})

        assert response.json() == {"success": True}
        assert mock_delete.call_args.args[1] == 40

    @patch("pnlplan.web.routes.line_items.delete_line_item", new_callable=AsyncMock)
    @patch("pnlplan.web.routes.line_items.get_session")
    def test_delete_missing_line_item(self, mock_get_session, mock_delete, client, mock_db_session):
        mock_get_session.return_value = mock_db_session
        mock_delete.side_effect = LineItemNotFoundError("Line item not found")

        response = client.post("/api/pnl/delete-line-item", json={"lineItemId": 40})

        assert response.status_code == 404
        assert response.json()["error"] == "Line item not found"

    @patch("pnlplan.web.routes.line_items.reorder_rows", new_callable=AsyncMock)
    @patch("pnlplan.web.routes.line_items.get_session")
    def test_reorder_row(self, mock_get_session, mock_reorder, client, mock_db_session):
        mock_get_session.return_value = mock_db_session
        mock_reorder.return_value = 2

        response = client.post(
            "/api/pnl/reorder-row", json={"lineItemId": 40, "newOrder": [41, 40, 42]}
        )

        assert response.json() == {"success": True}
        assert mock_reorder.call_args.args[1:] == (40, [41, 40, 42])


class TestUpdateCells:
    """Tests for POST /api/pnl/update-cells."""

    @patch("pnlplan.web.routes.line_items.update_cells", new_callable=AsyncMock)
    @patch("pnlplan.web.routes.line_items.get_session")
    def test_update_cells(self, mock_get_session, mock_update, client, mock_db_session, line_item):
        mock_get_session.return_value = mock_db_session
        mock_update.return_value = line_item

        response = client.post(
            "/api/pnl/update-cells", json={"lineItemId": 40, "updates": {"feb": 12.5}}
        )

        assert response.status_code == 200
        assert response.json()["lineItem"]["feb"] == 12.5

    @patch("pnlplan.web.routes.line_items.update_cells", new_callable=AsyncMock)
    @patch("pnlplan.web.routes.line_items.get_session")
    def test_update_cells_bad_month(self, mock_get_session, mock_update, client, mock_db_session):
        mock_get_session.return_value = mock_db_session
        mock_update.side_effect = InvalidRequestError("Invalid month key: total")

        response = client.post(
            "/api/pnl/update-cells", json={"lineItemId": 40, "updates": {"total": 1}}
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid month key: total"}

    def test_update_cells_requires_updates(self, client):
        response = client.post("/api/pnl/update-cells", json={"lineItemId": 40, "updates": {}})

        assert response.status_code == 400
