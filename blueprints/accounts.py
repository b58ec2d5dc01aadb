from flask import Blueprint, request, jsonify
from utils.errors import MiningError
from utils.ledger import get_account, get_reward_history, sync_account
from utils.request_utils import parse_user_id, error_response

accounts_bp = Blueprint('accounts', __name__, url_prefix='/api/accounts')


@accounts_bp.route('/sync', methods=['POST'])
def sync():
    data = request.get_json(silent=True) or {}
    telegram_id = parse_user_id(data.get('telegram_id'))
    if not telegram_id:
        return jsonify({'success': False, 'error': 'telegram_id is required'}), 400

    try:
        account, created = sync_account(telegram_id, data.get('username'), data.get('first_name'))
    except MiningError as e:
        return error_response(e)

    return jsonify({'success': True, 'created': created, 'user': account.to_dict()})


@accounts_bp.route('/<int:account_id>', methods=['GET'])
def get_balance(account_id):
    try:
        account = get_account(account_id)
    except MiningError as e:
        return error_response(e)
    return jsonify({'success': True, 'user': account.to_dict()})


@accounts_bp.route('/<int:account_id>/history', methods=['GET'])
def history(account_id):
    page = request.args.get('page', default=1, type=int)
    limit = request.args.get('limit', default=10, type=int)

    if page < 1 or limit < 1 or limit > 100:
        return jsonify({'success': False, 'message': 'Invalid pagination parameters'}), 400

    try:
        result = get_reward_history(account_id, page, limit)
    except MiningError as e:
        return error_response(e)
    return jsonify({'success': True, **result})
