import pytest

from emi_calc.config import Settings
from emi_calc_web.app import create_app
from emi_calc_web.comparison_store import ComparisonStore

LOAN_FORM = {"principal": "500k", "annual_rate_percent": "8.5", "term_periods": "240"}
LOAN_JSON = {"principal": "500000", "annual_rate_percent": "8.5", "term_periods": 240}


@pytest.fixture
def store(tmp_path):
    return ComparisonStore(f"sqlite:///{tmp_path / 'scenarios.sqlite3'}", max_per_user=10)


@pytest.fixture
def app(store):
    app = create_app(Settings(), store=store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def test_api_installment(client):
    response = client.post("/api/installment", json=LOAN_JSON)
    assert response.status_code == 200
    assert response.get_json() == {"installment": "4339.12"}


def test_api_installment_accepts_numbers(client):
    response = client.post(
        "/api/installment", json={"principal": 100000, "annual_rate_percent": 0, "term_periods": 12}
    )
    assert response.get_json()["installment"] == "8333.33"


def test_api_rejects_missing_field(client):
    response = client.post("/api/installment", json={"annual_rate_percent": "8.5", "term_periods": 240})
    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] is True
    assert body["field"] == "principal"
    assert body["detail"] == "principal must not be None"


def test_api_rejects_non_json_body(client):
    response = client.post("/api/installment", data="principal=1", content_type="text/plain")
    assert response.status_code == 400
    assert response.get_json()["field"] == "body"


def test_api_schedule(client):
    response = client.post("/api/schedule", json=LOAN_JSON)
    assert response.status_code == 200
    body = response.get_json()
    assert len(body["schedule"]) == 240
    assert body["schedule"][0]["period"] == 1
    assert body["schedule"][-1]["closing_balance"] == "0.00"
    assert body["summary"]["total_principal"] == "500000.00"


def test_api_prepayment(client):
    payload = dict(LOAN_JSON, prepayment_period=36, prepayment_amount="200000")
    response = client.post("/api/prepayment", json=payload)
    assert response.status_code == 200
    result = response.get_json()["prepayment"]
    assert result["baseline_installment"] == "4339.12"
    assert float(result["revised_installment"]) < 4339.12
    assert float(result["interest_saved"]) > 0


def test_api_prepayment_rejects_bad_period(client):
    payload = dict(LOAN_JSON, prepayment_period=0, prepayment_amount="200000")
    response = client.post("/api/prepayment", json=payload)
    assert response.status_code == 400
    assert response.get_json()["field"] == "prepayment_period"


def test_index_get(client):
    response = client.get("/")
    assert response.status_code == 200
    assert b"EMI Calculator" in response.data


def test_index_post_renders_results(client):
    form = dict(LOAN_FORM, prepayment_period="36", prepayment_amount="200k")
    response = client.post("/", data=form)
    assert response.status_code == 200
    assert b"4339.12" in response.data
    assert b"Interest saved" in response.data
    assert b"120 more rows not shown." in response.data


def test_index_post_full_schedule(client):
    response = client.post("/", data=dict(LOAN_FORM, show_full_schedule="1"))
    assert response.status_code == 200
    assert b"more rows not shown" not in response.data


def test_index_post_reports_invalid_input(client):
    response = client.post("/", data=dict(LOAN_FORM, principal="lots"))
    assert response.status_code == 200
    assert b"principal is not a valid number" in response.data


def test_index_requires_both_prepayment_fields(client):
    response = client.post("/", data=dict(LOAN_FORM, prepayment_period="36"))
    assert b"prepayment_amount must not be None" in response.data


def test_save_remove_and_clear_scenarios(client, store):
    with client.session_transaction() as sess:
        sess["user_token"] = "visitor"

    client.post("/", data=dict(LOAN_FORM, action="add_to_comparison", scenario_name="Base"))
    client.post(
        "/",
        data=dict(
            LOAN_FORM,
            action="add_to_comparison",
            scenario_name="Prepay",
            prepayment_period="36",
            prepayment_amount="200k",
        ),
    )
    scenarios = store.list_scenarios("visitor")
    assert [s["name"] for s in scenarios] == ["Base", "Prepay"]
    assert scenarios[0]["summary"]["installment"] == "4339.12"
    assert scenarios[0]["prepayment"] is None
    assert scenarios[1]["prepayment"]["prepayment_period"] == 36

    response = client.post("/comparison/remove", data={"scenario_id": scenarios[0]["id"]})
    assert response.status_code == 302
    assert [s["name"] for s in store.list_scenarios("visitor")] == ["Prepay"]

    response = client.post("/comparison/clear")
    assert response.status_code == 302
    assert store.list_scenarios("visitor") == []
