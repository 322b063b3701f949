"""Assessment Service HTTP handler - catalog, scoring and assignment endpoints.

The caller's role and identity come from the auth collaborator in front
of this service; they arrive here already resolved in the request.
"""
import logging
import os

from flask import Flask, request, jsonify

from wellpath.shared.utils import configure_pii_salt
from wellpath.services.access_service.gate import AssignmentGate
from .catalog import load_catalog
from .errors import (
    AssignmentPermissionError,
    IncompleteResponseError,
    InstrumentNotFoundError,
    InvalidAnswerValueError,
)
from .scorer import ScoringEvaluator

logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)

# Configure PII salt
pii_salt = os.getenv("PII_HASH_SALT", "default_dev_salt_change_in_production_32chars")
configure_pii_salt(pii_salt)

# Catalog is loaded and validated once; a bad file stops startup here
catalog = load_catalog()
evaluator = ScoringEvaluator(catalog)
gate = AssignmentGate(catalog)


def _split_ids(raw):
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _id_list(data, field):
    """Optional list of instrument ids from a request body."""
    value = data.get(field, [])
    if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
        raise ValueError(f"{field} must be a list of instrument ids")
    return value


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "assessment-service",
        "instrument_count": len(catalog),
    }), 200


@app.route("/instruments", methods=["GET"])
def list_instruments():
    """List instruments visible to the caller.

    Query Params:
        role: "clinician" or "subject" (default "subject")
        assigned: Comma-separated assigned instrument ids (optional)
    """
    try:
        role = request.args.get("role", "subject")
        assigned_ids = _split_ids(request.args.get("assigned"))

        visible = gate.list_visible_instruments(role, assigned_ids)

        return jsonify({
            "count": len(visible),
            "instruments": [summary.to_dict() for summary in visible],
        }), 200

    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.error("INSTRUMENT_LIST_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to list instruments"}), 500


@app.route("/instruments/<instrument_id>", methods=["GET"])
def get_instrument(instrument_id: str):
    """Full instrument definition including questions and options."""
    try:
        instrument = catalog.get(instrument_id)
        return jsonify(instrument.to_dict()), 200
    except InstrumentNotFoundError:
        return jsonify({"error": "Instrument not found"}), 404


@app.route("/assessments/evaluate", methods=["POST"])
def evaluate_assessment():
    """Score a completed questionnaire.

    Request Body:
        {
            "instrument_id": "phq9",
            "answers": {"phq9_1": 2, "phq9_2": 1, ...}
        }

    Response:
        {
            "instrument_id": "phq9",
            "total_score": 18,
            "severity_label": "Moderately Severe",
            "interpretation": "...",
            "warning": null
        }
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data:
            return jsonify({"error": "Request body required"}), 400

        instrument_id = data.get("instrument_id")
        answers = data.get("answers")
        if not instrument_id or not isinstance(answers, dict):
            return jsonify({"error": "Missing instrument_id or answers"}), 400

        result = evaluator.evaluate(instrument_id, answers)
        return jsonify(result.to_dict()), 200

    except InstrumentNotFoundError:
        return jsonify({"error": "Instrument not found"}), 404
    except IncompleteResponseError as e:
        return jsonify({
            "error": "Incomplete response",
            "missing_ids": list(e.missing_ids),
        }), 422
    except InvalidAnswerValueError as e:
        return jsonify({
            "error": "Invalid answer value",
            "question_id": e.question_id,
        }), 422
    except Exception as e:
        logger.error("EVALUATE_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to evaluate assessment"}), 500


@app.route("/assignments", methods=["POST"])
def update_assignments():
    """Change a subject's assigned instruments (clinicians only).

    Request Body:
        {
            "actor_role": "clinician",
            "actor_id": "clin_123",
            "subject_id": "subj_456",
            "current_ids": ["phq9"],
            "add": ["gad7"],
            "remove": []
        }
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data:
            return jsonify({"error": "Request body required"}), 400

        actor_role = data.get("actor_role")
        actor_id = data.get("actor_id")
        subject_id = data.get("subject_id")
        if not actor_role or not actor_id or not subject_id:
            return jsonify({"error": "Missing actor_role, actor_id or subject_id"}), 400

        updated = gate.update_assignments(
            actor_role=actor_role,
            actor_id=actor_id,
            subject_id=subject_id,
            current_ids=_id_list(data, "current_ids"),
            add=_id_list(data, "add"),
            remove=_id_list(data, "remove"),
        )

        return jsonify({"assigned_ids": sorted(updated)}), 200

    except AssignmentPermissionError:
        return jsonify({"error": "Only clinicians may change assignments"}), 403
    except InstrumentNotFoundError as e:
        return jsonify({"error": f"Instrument not found: {e.instrument_id}"}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.error("ASSIGNMENT_UPDATE_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to update assignments"}), 500


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", "8010"))
    app.run(host="0.0.0.0", port=port, debug=False)
