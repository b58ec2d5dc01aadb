from flask import Blueprint, request, jsonify
from utils.errors import MiningError
from utils.ledger import get_account
from utils.request_utils import parse_user_id, error_response, amounts_to_json
from utils.server_service import (
    claim_server_rewards, get_active_servers, get_pending_rewards, get_server_stats, purchase_server
)

servers_bp = Blueprint('servers', __name__, url_prefix='/api/servers')


@servers_bp.route('', methods=['GET'])
def list_servers():
    user_id = parse_user_id(request.args.get('user_id'))
    if not user_id:
        return jsonify({'success': False, 'error': 'user_id is required'}), 400

    try:
        get_account(user_id)
    except MiningError as e:
        return error_response(e)

    servers = get_active_servers(user_id)
    stats = get_server_stats(user_id)
    return jsonify({
        'success': True,
        'servers': [server.to_dict() for server in servers],
        'total_servers': stats['total_servers'],
        'per_day': amounts_to_json(stats['per_day']),
    })


@servers_bp.route('/pending', methods=['GET'])
def pending():
    user_id = parse_user_id(request.args.get('user_id'))
    if not user_id:
        return jsonify({'success': False, 'error': 'user_id is required'}), 400

    try:
        result = get_pending_rewards(user_id)
    except MiningError as e:
        return error_response(e)

    return jsonify({
        'success': True,
        'pending': amounts_to_json(result['pending']),
        'hours_since_claim': result['hours_since_claim'],
        'can_claim': result['can_claim'],
    })


@servers_bp.route('/purchase', methods=['POST'])
def purchase():
    data = request.get_json(silent=True) or {}
    user_id = parse_user_id(data.get('user_id'))
    server_id = data.get('server_id')
    if not user_id or not server_id:
        return jsonify({'success': False, 'error': 'user_id and server_id are required'}), 400

    try:
        server = purchase_server(user_id, server_id)
    except MiningError as e:
        return error_response(e)

    return jsonify({'success': True, 'server': server.to_dict()})


@servers_bp.route('/claim', methods=['POST'])
def claim():
    data = request.get_json(silent=True) or {}
    user_id = parse_user_id(data.get('user_id'))
    if not user_id:
        return jsonify({'success': False, 'error': 'User ID required'}), 400

    try:
        result = claim_server_rewards(user_id)
    except MiningError as e:
        return error_response(e)

    claimed = result['claimed']
    return jsonify({
        'success': True,
        'message': result['message'],
        'claimed': amounts_to_json(claimed),
        'claimed_bolt': str(claimed['BOLT']),
        'claimed_usdt': str(claimed['USDT']),
        'claimed_ton': str(claimed['TON']),
        'assets_processed': result['assets_processed'],
        'servers_count': result['servers_count'],
    })
