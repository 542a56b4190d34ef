import copy

from fastapi.testclient import TestClient

from accounting_api.documents.registry import DEFAULT_CHEQUE_SECTIONS

BASE = "/api/cheque-templates"


def _field_positions():
    return copy.deepcopy(DEFAULT_CHEQUE_SECTIONS[0]["fieldPositions"])


def test_create_and_read_flat_template(client: TestClient) -> None:
    positions = _field_positions()
    response = client.post(BASE + "/", json={"clientId": 201, "name": "Flat", "fieldPositions": positions})
    assert response.status_code == 201, response.text
    created = response.json()
    assert created["fieldPositions"] == positions

    # Stored as a single 3.5in section
    stored = client.get(f"/api/document-templates/{created['id']}").json()
    assert stored["documentType"] == "cheque"
    assert len(stored["sections"]) == 1
    assert stored["sections"][0]["heightInches"] == 3.5

    assert client.get(f"{BASE}/{created['id']}").json()["fieldPositions"] == positions


def test_missing_required_field(client: TestClient) -> None:
    positions = _field_positions()
    del positions["amountWords"]
    response = client.post(BASE + "/", json={"clientId": 202, "name": "Flat", "fieldPositions": positions})
    assert response.status_code == 422
    assert "amountWords" in response.json()["detail"]
    assert client.get(BASE + "/", params={"clientId": 202}).json() == []


def test_update_replaces_layout(client: TestClient) -> None:
    created = client.post(
        BASE + "/", json={"clientId": 203, "name": "Flat", "fieldPositions": _field_positions()}
    ).json()

    positions = _field_positions()
    positions["memo"]["x"] = 99
    positions["chequeNumber"] = {"x": 520, "y": 10, "width": 80, "height": 30}
    response = client.put(
        f"{BASE}/{created['id']}", json={"fieldPositions": positions, "expectedVersion": created["version"]}
    )
    assert response.status_code == 200
    assert response.json()["fieldPositions"] == positions
    assert response.json()["version"] == 2

    stale = client.put(f"{BASE}/{created['id']}", json={"name": "x", "expectedVersion": 1})
    assert stale.status_code == 409


def test_default_current_creates_builtin_template(client: TestClient) -> None:
    first = client.get(BASE + "/default/current", params={"clientId": 204})
    assert first.status_code == 200
    template = first.json()
    assert template["isDefault"] is True
    assert set(template["fieldPositions"]) == set(DEFAULT_CHEQUE_SECTIONS[0]["fieldPositions"])

    again = client.get(BASE + "/default/current", params={"clientId": 204}).json()
    assert again["id"] == template["id"]

    assert client.delete(f"{BASE}/{template['id']}").status_code == 400


def test_invoice_templates_are_not_cheques(client: TestClient) -> None:
    created = client.post(
        "/api/document-templates/",
        json={"documentType": "invoice", "clientId": 205, "name": "Inv",
              "sections": [{"id": "body", "name": "Body", "heightInches": 11}]},
    ).json()
    assert client.get(f"{BASE}/{created['id']}").status_code == 404


def test_update_with_null_name_is_rejected(client: TestClient) -> None:
    created = client.post(
        BASE + "/", json={"clientId": 206, "name": "Flat", "fieldPositions": _field_positions()}
    ).json()
    url = f"{BASE}/{created['id']}"

    assert client.put(url, json={"name": None}).status_code == 422
    assert client.put(url, json={"fieldPositions": None}).status_code == 422
    assert client.get(url).json()["name"] == "Flat"
