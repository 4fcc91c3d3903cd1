"""
Card delivery routes: card, feedback, show-later, share, reset and stats.
"""
import logging

from flask import Blueprint, jsonify, request

from card_service import CardEngine, FeedbackAction, ItemNotFound
from .services import VisitorSessionService

logger = logging.getLogger(__name__)

ALL_SEEN_MESSAGE = "You've seen all cards! Here's a recommended re-read."


def create_card_routes(
    card_engine: CardEngine,
    session_service: VisitorSessionService,
    event_tracker=None,
) -> Blueprint:
    """Create card delivery routes.

    Args:
        card_engine: Core engine selecting cards and updating visitor state
        session_service: Cookie transport for the visitor state
        event_tracker: Optional event tracker for views, feedback and shares

    Returns:
        Flask blueprint with the /api card routes
    """
    bp = Blueprint('card_delivery', __name__, url_prefix='/api')

    @bp.route("/card", methods=["GET"])
    def deliver_card():
        """Deliver a single personalized card."""
        state = session_service.load_state()
        language = request.args.get("language") or None

        result = card_engine.deliver_card(state, language=language)
        if not result.has_item:
            return jsonify({"success": False, "error": "No cards available"}), 404

        if event_tracker is not None:
            event_tracker.track_card_view(result.item.id)

        meta = card_engine.get_stats(result.state).to_dict()
        if result.all_seen:
            meta["allSeen"] = True
            meta["message"] = ALL_SEEN_MESSAGE

        response = jsonify({
            "success": True,
            "card": result.item.to_card_dict(),
            "meta": meta,
        })
        return session_service.save_state(response, result.state)

    @bp.route("/card/<card_id>/feedback", methods=["POST"])
    def submit_feedback(card_id):
        """Record visitor feedback (like, dislike, skip)."""
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            action = data.get("action")
        else:
            action = request.form.get("action")

        if not isinstance(action, str) or not FeedbackAction.is_valid(action):
            return jsonify({
                "success": False,
                "error": "Invalid action. Must be: like, dislike, or skip",
            }), 400

        state = session_service.load_state()
        try:
            state = card_engine.submit_feedback(state, card_id, action)
        except ItemNotFound:
            return jsonify({"success": False, "error": "Card not found"}), 404

        if event_tracker is not None:
            event_tracker.track_feedback(card_id, action)

        response = jsonify({"success": True, "message": f"Feedback recorded: {action}"})
        return session_service.save_state(response, state)

    @bp.route("/card/<card_id>/later", methods=["POST"])
    def show_later(card_id):
        """Mark a card to be shown again later."""
        state = session_service.load_state()
        try:
            state = card_engine.show_later(state, card_id)
        except ItemNotFound:
            return jsonify({"success": False, "error": "Card not found"}), 404

        response = jsonify({"success": True, "message": "Card marked to show later"})
        return session_service.save_state(response, state)

    @bp.route("/card/<card_id>/share", methods=["POST"])
    def share_card(card_id):
        """Record that a card was shared."""
        if event_tracker is not None:
            event_tracker.track_share(card_id)
        return jsonify({"success": True, "message": "Share tracked"})

    @bp.route("/reset", methods=["POST"])
    def reset_session():
        """Forget the visitor's history by clearing the session cookie."""
        response = jsonify({"success": True, "message": "Session reset successfully"})
        return session_service.clear_state(response)

    @bp.route("/stats", methods=["GET"])
    def get_user_stats():
        """Progress and preference summary for the current visitor."""
        state = session_service.load_state()
        return jsonify({"success": True, "stats": card_engine.get_profile_summary(state)})

    return bp
