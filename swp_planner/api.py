"""REST backend for withdrawal-plan scenarios."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List

from flask import Flask, jsonify, request

from .config import Settings, configure_logging, settings_from_env
from .data_model import (
    CashFlow,
    ExpenseTableModel,
    IncomeTableModel,
    InvestmentTableModel,
    LiabilityTableModel,
    SWPConfig,
)
from .engine.amortization import compute_emi, total_interest
from .engine.projector import maturity_value
from .engine.simulator import run_swp_plan
from .engine.state import RECORD_TYPES, ScenarioState, summarize
from .engine.xirr import xirr
from .errors import InvalidInputError, RecordNotFoundError, ScenarioNotFoundError

logger = logging.getLogger(__name__)

TABLE_MODELS = {
    "incomes": IncomeTableModel(),
    "expenses": ExpenseTableModel(),
    "investments": InvestmentTableModel(),
    "liabilities": LiabilityTableModel(),
}


def _is_nan(value: Any) -> bool:
    try:
        return not math.isfinite(value)
    except (TypeError, ValueError):
        return False


def _sanitize_records(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    clean_rows: List[Dict[str, Any]] = []
    for row in records:
        clean_rows.append({key: (None if _is_nan(value) else value) for key, value in row.items()})
    return clean_rows


def _extract_payload_value(payload: dict, *keys: str, default=None):
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def _scenario_payload(state: ScenarioState, scenario_id: str) -> Dict[str, Any]:
    scenario = state.get(scenario_id)
    view = state.view(scenario.id)
    payload = scenario.to_dict()
    payload["active"] = scenario.id == state.active_id
    payload["summary"] = summarize(view)
    payload["investments"] = [
        {**item.to_row(), "maturityValue": maturity_value(item)} for item in view.investments()
    ]
    payload["liabilities"] = [
        {**item.to_row(), "emi": compute_emi(item), "totalInterest": total_interest(item)}
        for item in view.liabilities()
    ]
    return payload


def create_app(settings: Settings | None = None, state: ScenarioState | None = None) -> Flask:
    settings = settings or settings_from_env()
    app = Flask(__name__)
    app.config["PLANNER_SETTINGS"] = settings
    state = state or ScenarioState(settings.storage_path)
    logger.info("Scenario store at %s", state.storage_path or "<memory>")

    @app.after_request
    def apply_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,PATCH,DELETE,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(InvalidInputError)
    def handle_invalid_input(exc):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(ScenarioNotFoundError)
    def handle_missing_scenario(exc):
        return jsonify({"error": f"Scenario not found: {exc.args[0] if exc.args else ''}"}), 404

    @app.errorhandler(RecordNotFoundError)
    def handle_missing_record(exc):
        return jsonify({"error": f"Record not found: {exc.args[0] if exc.args else ''}"}), 404

    @app.get("/api/health")
    def healthcheck():
        return jsonify({"status": "ok"})

    @app.get("/api/schema")
    def get_schema():
        models = {}
        for kind, model in TABLE_MODELS.items():
            payload = model.payload()
            payload["defaults"] = _sanitize_records(payload["defaults"])
            models[kind] = payload
        return jsonify(
            {
                "planDefaults": {
                    "inflationRate": 6.0,
                    "annualReturnRate": 8.0,
                    "compoundingMode": settings.compounding_mode,
                    "capContributionsAtDeclaredTerm": settings.cap_contributions_at_declared_term,
                },
                "records": models,
            }
        )

    @app.get("/api/scenarios")
    def list_scenarios():
        return jsonify({"scenarios": state.list_scenarios(), "activeScenarioId": state.active_id})

    @app.post("/api/scenarios")
    def create_scenario():
        payload = request.get_json(silent=True) or {}
        name = str(_extract_payload_value(payload, "name", "scenarioName", default="")).strip()
        scenario = state.create_scenario(name)
        return jsonify(_scenario_payload(state, scenario.id)), 201

    @app.get("/api/scenarios/<scenario_id>")
    def get_scenario(scenario_id: str):
        return jsonify(_scenario_payload(state, scenario_id))

    @app.patch("/api/scenarios/<scenario_id>")
    def rename_scenario(scenario_id: str):
        payload = request.get_json(silent=True) or {}
        state.rename_scenario(scenario_id, str(payload.get("name", "")))
        return jsonify(_scenario_payload(state, scenario_id))

    @app.delete("/api/scenarios/<scenario_id>")
    def delete_scenario(scenario_id: str):
        state.delete_scenario(scenario_id)
        return jsonify({"message": "Scenario deleted.", "scenarios": state.list_scenarios()})

    @app.post("/api/scenarios/<scenario_id>/activate")
    def activate_scenario(scenario_id: str):
        state.set_active(scenario_id)
        return jsonify({"activeScenarioId": state.active_id})

    @app.put("/api/scenarios/<scenario_id>/cash")
    def set_cash(scenario_id: str):
        payload = request.get_json(silent=True) or {}
        try:
            amount = float(payload.get("cash", 0.0) or 0.0)
        except (TypeError, ValueError):
            return jsonify({"error": "cash must be a number."}), 400
        state.set_cash(amount, scenario_id)
        return jsonify(_scenario_payload(state, scenario_id))

    @app.post("/api/scenarios/<scenario_id>/<kind>")
    def add_record(scenario_id: str, kind: str):
        if kind not in RECORD_TYPES:
            return jsonify({"error": f"Unknown record kind: {kind}"}), 404
        payload = request.get_json(silent=True) or {}
        record = state.add_record(kind, payload, scenario_id)
        return jsonify(record.to_row()), 201

    @app.put("/api/scenarios/<scenario_id>/<kind>/<record_id>")
    def update_record(scenario_id: str, kind: str, record_id: str):
        if kind not in RECORD_TYPES:
            return jsonify({"error": f"Unknown record kind: {kind}"}), 404
        payload = request.get_json(silent=True) or {}
        record = state.update_record(kind, record_id, payload, scenario_id)
        return jsonify(record.to_row())

    @app.delete("/api/scenarios/<scenario_id>/<kind>/<record_id>")
    def delete_record(scenario_id: str, kind: str, record_id: str):
        if kind not in RECORD_TYPES:
            return jsonify({"error": f"Unknown record kind: {kind}"}), 404
        state.delete_record(kind, record_id, scenario_id)
        return jsonify({"message": "Record deleted."})

    @app.get("/api/scenarios/<scenario_id>/swp")
    def get_swp_plan(scenario_id: str):
        plan = state.get_plan(scenario_id)
        if plan is None:
            return jsonify({"error": "No SWP plan for this scenario."}), 404
        return jsonify(plan)

    @app.post("/api/scenarios/<scenario_id>/swp")
    def run_swp(scenario_id: str):
        payload = request.get_json(silent=True) or {}
        config = SWPConfig.from_payload(payload, settings)
        result = run_swp_plan(state.view(scenario_id), config)
        logger.debug("Saved SWP plan for scenario %s: %s", scenario_id, result.summary)
        return jsonify(state.save_plan(result, scenario_id))

    @app.delete("/api/scenarios/<scenario_id>/swp")
    def clear_swp_plan(scenario_id: str):
        state.clear_plan(scenario_id)
        return jsonify({"message": "SWP plan cleared."})

    @app.post("/api/xirr")
    def calculate_xirr():
        payload = request.get_json(silent=True) or {}
        rows = _extract_payload_value(payload, "cashFlows", "cash_flows", default=[])
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            return jsonify({"error": "cashFlows must be a list of {amount, when} objects."}), 400
        flows = [CashFlow.from_row(row) for row in rows]
        rate = xirr(flows)
        if math.isnan(rate):
            return jsonify({"error": "XIRR could not be solved for these cash flows.", "rate": None, "ratePct": None}), 422
        return jsonify({"rate": rate, "ratePct": rate * 100})

    return app


if __name__ == "__main__":
    env_settings = settings_from_env()
    configure_logging(env_settings.log_level)
    create_app(env_settings).run(debug=False, port=8000)
