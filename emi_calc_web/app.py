"""Flask front end for the EMI calculator.

The index page renders a form for a loan and an optional one-time
prepayment, shows the schedule summary, a schedule preview and the
prepayment comparison, and lets the visitor save scenarios for side-by-side
comparison. A small JSON API exposes the three engine operations.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from flask import Flask, jsonify, redirect, render_template, request, session, url_for

from emi_calc.config import Settings, configure_logging, get_settings
from emi_calc.engine import compute_loan, simulate_single_prepayment, solve_installment
from emi_calc.errors import InvalidArgument
from emi_calc.main import entry_to_dict, prepayment_to_dict, summary_to_dict
from emi_calc.utils import parse_amount, parse_percent
from emi_calc_web.comparison_store import ComparisonStore, create_store

logger = logging.getLogger(__name__)


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _parse_field(form, name: str, parser) -> Any:
    raw = form.get(name, "").strip()
    if not raw:
        raise InvalidArgument(name, "must not be None")
    try:
        return parser(raw)
    except ValueError as exc:
        raise InvalidArgument(name, "is not a valid number") from exc


def _form_to_inputs(form) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    """Read loan inputs, plus prepayment inputs when either prepayment field is filled."""
    loan = {
        "principal": _parse_field(form, "principal", parse_amount),
        "annual_rate_percent": _parse_field(form, "annual_rate_percent", parse_percent),
        "term_periods": _parse_field(form, "term_periods", int),
    }
    prepayment = None
    if form.get("prepayment_period", "").strip() or form.get("prepayment_amount", "").strip():
        prepayment = {
            "prepayment_period": _parse_field(form, "prepayment_period", int),
            "prepayment_amount": _parse_field(form, "prepayment_amount", parse_amount),
        }
    return loan, prepayment


def _run_analysis(form, show_full_schedule: bool, max_rows: int):
    loan, prepayment_inputs = _form_to_inputs(form)
    schedule, summary = compute_loan(loan["principal"], loan["annual_rate_percent"], loan["term_periods"])
    prepayment = None
    if prepayment_inputs:
        prepayment = simulate_single_prepayment(
            loan["principal"],
            loan["annual_rate_percent"],
            loan["term_periods"],
            prepayment_inputs["prepayment_period"],
            prepayment_inputs["prepayment_amount"],
        )
    truncated = 0
    preview = list(schedule)
    if not show_full_schedule and len(schedule) > max_rows:
        preview = preview[:max_rows]
        truncated = len(schedule) - max_rows
    return loan, summary, preview, truncated, prepayment


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidArgument("body", "must be a JSON object")
    return data


def create_app(settings: Optional[Settings] = None, store: Optional[ComparisonStore] = None) -> Flask:
    """Build the Flask application.

    ``settings`` defaults to the environment configuration and ``store`` to a
    :class:`ComparisonStore` on ``settings.database_url``.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = Flask(__name__)
    app.config["ASSET_VERSION"] = settings.asset_version
    app.config["MAX_PRINT_ROWS"] = settings.max_print_rows
    app.secret_key = settings.secret_key
    comparison_store = store or create_store(
        settings.database_url, max_per_user=settings.max_scenarios_per_user
    )
    app.extensions["comparison_store"] = comparison_store

    @app.errorhandler(InvalidArgument)
    def handle_invalid_argument(exc: InvalidArgument):
        logger.warning("Rejected API input: %s", exc)
        return jsonify({"error": True, "field": exc.field, "detail": str(exc)}), 400

    @app.route("/", methods=["GET", "POST"])
    def index():
        loan = None
        summary = None
        schedule = None
        truncated = 0
        prepayment = None
        error = None
        show_full_schedule = False
        action = "run"

        user_token = _ensure_user_token()

        if request.method == "POST":
            action = request.form.get("action", "run")
            show_full_schedule = request.form.get("show_full_schedule") == "1"
            try:
                loan, summary, schedule, truncated, prepayment = _run_analysis(
                    request.form, show_full_schedule, app.config["MAX_PRINT_ROWS"]
                )
                if action == "add_to_comparison":
                    scenario_name = request.form.get("scenario_name", "").strip() or "Scenario"
                    comparison_store.add_scenario(
                        user_token,
                        uuid4().hex,
                        scenario_name,
                        {k: str(v) for k, v in loan.items()},
                        summary_to_dict(summary),
                        prepayment_to_dict(prepayment) if prepayment else None,
                    )
            except InvalidArgument as exc:
                logger.warning("Rejected form input: %s", exc)
                error = str(exc)
            except Exception:
                logger.exception("Unexpected error while computing a loan")
                error = "An unexpected error occurred. Please check the inputs and try again."

        comparison_scenarios = comparison_store.list_scenarios(user_token)
        return render_template(
            "index.html",
            form=request.form,
            loan=loan,
            summary=summary,
            schedule=schedule,
            truncated=truncated,
            show_full_schedule=show_full_schedule,
            prepayment=prepayment,
            error=error,
            asset_version=app.config["ASSET_VERSION"],
            comparison_scenarios=comparison_scenarios,
            last_action=action,
        )

    @app.post("/comparison/remove")
    def remove_comparison():
        scenario_id = request.form.get("scenario_id")
        user_token = session.get("user_token")
        comparison_store.remove_scenario(user_token, scenario_id)
        return redirect(url_for("index"))

    @app.post("/comparison/clear")
    def clear_comparisons():
        user_token = session.get("user_token")
        comparison_store.clear_scenarios(user_token)
        return redirect(url_for("index"))

    @app.post("/api/installment")
    def api_installment():
        data = _json_body()
        installment = solve_installment(
            data.get("principal"), data.get("annual_rate_percent"), data.get("term_periods")
        )
        return jsonify({"installment": f"{installment:.2f}"})

    @app.post("/api/schedule")
    def api_schedule():
        data = _json_body()
        schedule, summary = compute_loan(
            data.get("principal"), data.get("annual_rate_percent"), data.get("term_periods")
        )
        return jsonify(
            {
                "summary": summary_to_dict(summary),
                "schedule": [entry_to_dict(e) for e in schedule],
            }
        )

    @app.post("/api/prepayment")
    def api_prepayment():
        data = _json_body()
        result = simulate_single_prepayment(
            data.get("principal"),
            data.get("annual_rate_percent"),
            data.get("term_periods"),
            data.get("prepayment_period"),
            data.get("prepayment_amount"),
        )
        return jsonify({"prepayment": prepayment_to_dict(result)})

    return app


if __name__ == "__main__":
    print("Starting EMI calculator web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
