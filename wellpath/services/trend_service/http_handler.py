"""Trend Service HTTP handler - trend and insight endpoints.

Callers send the subject's sample history with each request; this
service stores nothing.
"""
import logging
import os
from datetime import datetime, timezone

from flask import Flask, request, jsonify

from wellpath.shared.models import MetricSample
from wellpath.shared.utils import configure_pii_salt
from .analyzer import TrendAnalyzer
from .config import DEFAULT_WINDOW_DAYS, TrendConfig
from .insights import InsightRuleEngine

logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)

# Configure PII salt
pii_salt = os.getenv("PII_HASH_SALT", "default_dev_salt_change_in_production_32chars")
configure_pii_salt(pii_salt)

config = TrendConfig(
    window_days=int(os.getenv("TREND_WINDOW_DAYS", str(DEFAULT_WINDOW_DAYS))),
)
analyzer = TrendAnalyzer(config)
insight_engine = InsightRuleEngine()


def _parse_timestamp(raw: str) -> datetime:
    """ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(raw, str):
        raise ValueError(f"Expected ISO-8601 timestamp, got {raw!r}")
    parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_samples(raw_samples):
    if not isinstance(raw_samples, list):
        raise ValueError("samples must be a list")

    samples = []
    for raw in raw_samples:
        value = raw.get("value") if isinstance(raw, dict) else None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Sample value must be a number: {raw!r}")
        if not raw.get("subject_id") or not raw.get("metric_name"):
            raise ValueError("Each sample needs subject_id and metric_name")
        samples.append(MetricSample(
            subject_id=raw["subject_id"],
            metric_name=raw["metric_name"],
            value=float(value),
            recorded_at=_parse_timestamp(raw.get("recorded_at")),
        ))
    return samples


def _parse_request(data):
    """Shared body parsing for both endpoints.

    Returns:
        (samples, now, window_days)
    """
    samples = _parse_samples(data.get("samples"))
    now = _parse_timestamp(data["now"]) if data.get("now") else datetime.now(timezone.utc)

    window_days = data.get("window_days")
    if window_days is not None:
        if isinstance(window_days, bool) or not isinstance(window_days, (int, float)):
            raise ValueError("window_days must be a number")
        if window_days <= 0:
            raise ValueError(f"window_days must be positive, got {window_days}")
    return samples, now, window_days


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "trend-service",
        "window_days": config.window_days,
    }), 200


@app.route("/trends/analyze", methods=["POST"])
def analyze_trends():
    """Analyze every metric present in the submitted samples.

    Request Body:
        {
            "now": "2024-03-31T00:00:00+00:00",
            "window_days": 30,
            "samples": [
                {"subject_id": "...", "metric_name": "anxiety",
                 "value": 6, "recorded_at": "2024-03-20T09:00:00+00:00"}
            ]
        }

    Response:
        {"trends": {"anxiety": {...TrendResult...}}}
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data:
            return jsonify({"error": "Request body required"}), 400

        samples, now, window_days = _parse_request(data)
        trends = analyzer.analyze_all(samples, now, window_days)

        return jsonify({
            "trends": {name: result.to_dict() for name, result in trends.items()},
        }), 200

    except (KeyError, TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.error("TREND_ANALYZE_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to analyze trends"}), 500


@app.route("/insights", methods=["POST"])
def analyze_insights():
    """Analyze the submitted samples and render insights.

    Request Body: same as /trends/analyze

    Response:
        {
            "trends": {...},
            "insights": [{"category": "positive", "message": "...",
                          "rule_id": "anxiety_improved", "metrics": ["anxiety"]}]
        }
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data:
            return jsonify({"error": "Request body required"}), 400

        samples, now, window_days = _parse_request(data)
        trends = analyzer.analyze_all(samples, now, window_days)
        generated = insight_engine.generate(trends)

        return jsonify({
            "trends": {name: result.to_dict() for name, result in trends.items()},
            "insights": [insight.to_dict() for insight in generated],
        }), 200

    except (KeyError, TypeError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.error("INSIGHTS_ERROR", extra={"error": str(e)})
        return jsonify({"error": "Failed to generate insights"}), 500


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", "8011"))
    app.run(host="0.0.0.0", port=port, debug=False)
