from flask import Blueprint, jsonify, request, current_app
from darksignal import db
from darksignal.services.scoreboard.records import append_score, top_scores, recent_scores

scores = Blueprint('scores', __name__)


@scores.route('/score', methods=['POST'])
def save_score():
    """
    Appends one run record. Values are type-coerced only; there is no other validation.
    """
    data = request.get_json(silent=True) or {}
    try:
        score = append_score(data)
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(f"[score-save-failed] payload={data!r} error={exc}")
        return jsonify({'error': 'Failed to save score'}), 500

    current_app.logger.info(f"[score-saved] player={score.player} time={score.time}s won={score.won}")
    return jsonify({'message': 'Score Saved'}), 201


@scores.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    """
    Returns winning runs only, fastest first.
    """
    try:
        rows = top_scores()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(f"[leaderboard-failed] error={exc}")
        return jsonify({'error': 'Failed to fetch leaderboard'}), 500
    return jsonify([s.to_dict() for s in rows])


@scores.route('/scores/all', methods=['GET'])
def get_all_scores():
    # Debug listing, newest first
    try:
        rows = recent_scores()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(f"[scores-failed] error={exc}")
        return jsonify({'error': 'Failed to fetch scores'}), 500
    return jsonify([s.to_dict() for s in rows])
