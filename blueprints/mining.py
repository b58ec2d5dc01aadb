from flask import Blueprint, request, jsonify
from utils.errors import MiningError
from utils.mining_service import start_session, complete_session, get_mining_status
from utils.request_utils import parse_user_id, error_response

mining_bp = Blueprint('mining', __name__, url_prefix='/api/mining')


@mining_bp.route('/start', methods=['POST'])
def mining_start():
    data = request.get_json(silent=True) or {}
    user_id = parse_user_id(data.get('user_id'))
    if not user_id:
        return jsonify({"success": False, "error": "user_id is required"}), 400

    try:
        session = start_session(user_id)
    except MiningError as e:
        return error_response(e)

    return jsonify({"success": True, "message": "Mining session started", "session": session.to_dict()})


@mining_bp.route('/complete', methods=['POST'])
def mining_complete():
    data = request.get_json(silent=True) or {}
    user_id = parse_user_id(data.get('user_id'))
    if not user_id:
        return jsonify({"success": False, "error": "user_id is required"}), 400

    try:
        result = complete_session(user_id)
    except MiningError as e:
        return error_response(e)

    return jsonify({
        "success": True,
        "message": "Mining session completed",
        "total_reward": str(result['reward']),
        "session": result['session'],
    })


@mining_bp.route('/status', methods=['GET'])
def mining_status():
    user_id = parse_user_id(request.args.get('user_id'))
    if not user_id:
        return jsonify({"success": False, "error": "user_id is required"}), 400

    try:
        status = get_mining_status(user_id)
    except MiningError as e:
        return error_response(e)

    progress = status.get('progress')
    if progress:
        progress = dict(progress, tokens_mined=str(progress['tokens_mined']))

    return jsonify({
        "success": True,
        "isMining": status['is_mining'],
        "session": status['session'],
        "progress": progress,
        "last_session": status.get('last_session'),
        "user": status['account'],
    })
