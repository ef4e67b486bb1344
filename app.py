from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request

from coin_pulse import PulseAgent, PulseConfig
from coin_pulse.coins import parse_coins
from coin_pulse.curves import curves_to_text, ytd_trend_direction
from coin_pulse.errors import InvalidDate
from coin_pulse.windows import resolve_window


def _window_label(window_param: Optional[str], date_param: Optional[str]) -> str:
    if date_param:
        return "date"
    mode = (window_param or "").lower()
    return mode if mode in ("ytd", "yesterday") else "date"


def create_app(agent: Optional[PulseAgent] = None) -> Flask:
    app = Flask(__name__)
    pulse = agent or PulseAgent(PulseConfig.from_env())

    @app.errorhandler(InvalidDate)
    def invalid_date(exc: InvalidDate):
        return jsonify({"error": "invalid-date", "detail": str(exc)}), 400

    @app.get("/health")
    def healthcheck():
        return {"status": "ok"}

    @app.get("/api/series")
    def series():
        coins = parse_coins(request.args.get("coins"))
        date_param = request.args.get("date")
        window_param = request.args.get("window")
        window = resolve_window(window_param, date_param)
        try:
            results = pulse.series(coins, window)
        except Exception:  # pragma: no cover - runtime guard
            app.logger.exception("Uncaught exception when handling /api/series")
            return jsonify({"error": "server-error"}), 500
        label = _window_label(window_param, date_param)
        body = {"window": label, "coins": coins, "series": [pulse.to_dict(item) for item in results]}
        if label == "date":
            body["date"] = window.from_date.date().isoformat()
        return jsonify(body)

    @app.get("/api/curves")
    def curves():
        coins = parse_coins(request.args.get("coins"))
        date_param = request.args.get("date")
        window_param = request.args.get("window")
        window = resolve_window(window_param, date_param)
        try:
            results = pulse.curves_for(coins, window)
        except Exception:  # pragma: no cover - runtime guard
            app.logger.exception("Uncaught exception when handling /api/curves")
            return jsonify({"error": "server-error"}), 500
        label = _window_label(window_param, date_param)
        body = {
            "window": label,
            "coins": coins,
            "curves": [pulse.to_dict(item) for item in results],
            "trend": {item.coin: ytd_trend_direction(item) for item in results},
            "text": curves_to_text(results, ytd=label == "ytd"),
        }
        if label == "date":
            body["date"] = window.from_date.date().isoformat()
        return jsonify(body)

    @app.get("/api/news_points")
    def news_points():
        coin = (request.args.get("coin") or "BTC").strip().upper()
        window = resolve_window(request.args.get("window"), request.args.get("date"))
        try:
            points = pulse.news_points(coin, window)
        except Exception:  # pragma: no cover - runtime guard
            app.logger.exception("Uncaught exception when handling /api/news_points")
            return jsonify({"error": "server-error"}), 500
        return jsonify({"window": window.kind, "coin": coin, "points": [pulse.to_dict(point) for point in points]})

    @app.get("/api/news_overlay")
    def news_overlay():
        coin = (request.args.get("coin") or "BTC").strip().upper()
        window = resolve_window(request.args.get("window"), request.args.get("date"))
        try:
            body = pulse.news_overlay(coin, window)
        except Exception:  # pragma: no cover - runtime guard
            app.logger.exception("Uncaught exception when handling /api/news_overlay")
            return jsonify({"error": "server-error"}), 500
        body["window"] = window.kind
        return jsonify(body)

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    create_app().run(debug=True, host="0.0.0.0", port=8080)
