from flask import Flask, request, jsonify
from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError

from tripflow import init_db
from tripflow.graph.graph import TripAssistant
from tripflow.graph.merger import SelectionError, apply_selection
from tripflow.schemas import HotelOffer, TransportOffer, TripContext
from tripflow.services import Services
from tripflow.utils.logger import get_logger

load_dotenv()

log = get_logger("tripflow.server")

_transport_offer = TypeAdapter(TransportOffer)


def _parse_offer(raw: dict):
    if raw.get("kind") in ("flight", "train", "bus"):
        return _transport_offer.validate_python(raw)
    return HotelOffer.model_validate(raw)


def create_app(services: Services = None) -> Flask:
    app = Flask(__name__)
    assistant = TripAssistant(services)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.post("/chat")
    def chat():
        body = request.get_json(force=True, silent=True) or {}
        user_input = (body.get("message") or "").strip()
        if not user_input:
            return jsonify({"error": "message is required"}), 400

        try:
            context = TripContext.model_validate(body.get("context") or {})
        except ValidationError as e:
            return jsonify({"error": "invalid context", "details": str(e)}), 400

        out = assistant.invoke(user_input, context, body.get("user"))
        payload = out["result"].to_wire()
        payload["trace"] = out.get("trace", [])
        return jsonify(payload)

    @app.post("/select")
    def select():
        """Record the user's pick of a displayed offer on the echoed context."""
        body = request.get_json(force=True, silent=True) or {}
        raw_offer = body.get("offer")
        if not isinstance(raw_offer, dict):
            return jsonify({"error": "offer is required"}), 400

        try:
            context = TripContext.model_validate(body.get("context") or {})
            offer = _parse_offer(raw_offer)
            updated = apply_selection(context, offer, body.get("leg") or "outbound")
        except ValidationError as e:
            return jsonify({"error": "invalid payload", "details": str(e)}), 400
        except SelectionError as e:
            return jsonify({"error": str(e)}), 400

        log.info("selected %s (%s)", getattr(offer, "kind", "hotel"), offer.id)
        return jsonify({"context": updated.to_wire()})

    return app


if __name__ == "__main__":
    # Create tables (simple dev mode)
    init_db()
    create_app().run(host="0.0.0.0", port=5000, debug=True)
