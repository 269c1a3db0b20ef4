import pytest
from fastapi.testclient import TestClient

from main import app


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"ok": True}


def test_assumptions(client):
    body = client.get("/coast/assumptions").json()
    assert body["targetSalaryVsNetWorth"] == 0.10
    assert body["cashBufferMonths"] == 6
    assert body["closeBandFraction"] == 0.05
    assert body["returnScenarios"] == [0.08, 0.09, 0.10, 0.11, 0.12]
    assert body["defaults"]["netWorth"] == 3000000.0
    assert len(body["states"]) == 50
    assert body["filingStatuses"] == ["Single", "MFJ"]


def test_evaluate_uses_defaults_when_body_empty(client):
    res = client.post("/coast/evaluate", json={})
    assert res.status_code == 200
    body = res.json()
    assert body["verdict"] == "NOT YET"
    assert body["driver"] == "Insufficient cash buffer"
    assert body["nextStep"] == "Hold about $30,000 more in cash for a 6-month buffer."
    assert len(body["sensitivity"]) == 5


def test_evaluate_yes_with_form_strings(client):
    payload = {
        "netWorth": "$4,000,000",
        "salary": "480k",
        "salaryTaxRate": "25%",
        "investReturn": "10%",
        "investTaxRate": 0.2,
        "spend": "180,000",
        "sideIncome": "",
        "cashOnHand": "90000",
        "state": "ca",
        "filing": "single",
    }
    res = client.post("/coast/evaluate", json=payload)
    assert res.status_code == 200
    body = res.json()
    assert body["verdict"] == "YES"
    assert body["nextStep"] == "You can coast."
    assert body["inputs"]["sideIncome"] == 0.0
    assert body["meta"]["state"] == "CA"
    assert body["meta"]["filing"] == "Single"


def test_evaluate_can_skip_sensitivity(client):
    res = client.post("/coast/evaluate", params={"includeSensitivity": "false"}, json={})
    assert "sensitivity" not in res.json()


def test_evaluate_zero_net_worth_returns_nulls(client):
    res = client.post("/coast/evaluate", json={"netWorth": 0})
    assert res.status_code == 200
    body = res.json()
    assert body["derived"]["salaryVsNW"] is None
    assert body["rules"]["ruleB"]["pass"] is False
    assert body["driver"] == "Salary too large vs net worth"


def test_negative_rate_is_clamped(client):
    body = client.post("/coast/evaluate", json={"investReturn": -0.05}).json()
    assert body["inputs"]["investReturn"] == 0.0


@pytest.mark.parametrize(
    "payload",
    [
        {"state": "ZZ"},
        {"filing": "HOH"},
        {"netWorth": "a lot"},
        {"bogus": 1},
    ],
)
def test_evaluate_rejects_bad_input(client, payload):
    res = client.post("/coast/evaluate", json=payload)
    assert res.status_code == 422


def test_sensitivity_endpoint(client):
    res = client.post("/coast/sensitivity", json={"cashOnHand": 90000})
    assert res.status_code == 200
    rows = res.json()
    assert [r["rate"] for r in rows] == [0.08, 0.09, 0.10, 0.11, 0.12]
    # Rule B still fails at 12% salary share, gap -0.02 -> CLOSE at every rate.
    assert all(r["verdict"] == "CLOSE" for r in rows)


def test_simulate(client):
    res = client.post(
        "/coast/simulate",
        json={"inputs": {}, "overrides": {"netWorth": "4M", "cashOnHand": 90000}},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["scenarioSummary"]["verdictBase"] == "NOT YET"
    assert body["scenarioSummary"]["verdictSimulated"] == "YES"


def test_simulate_requires_overrides(client):
    res = client.post("/coast/simulate", json={"inputs": {}})
    assert res.status_code == 400
