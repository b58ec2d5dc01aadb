from flask import Blueprint, request, jsonify
from utils.errors import MiningError
from utils.request_utils import parse_user_id, error_response
from utils.upgrade_service import upgrade_account

upgrades_bp = Blueprint('upgrades', __name__, url_prefix='/api/upgrades')


def _upgrade(kind):
    data = request.get_json(silent=True) or {}
    user_id = parse_user_id(data.get('user_id'))
    if not user_id:
        return jsonify({'success': False, 'error': 'User ID is required'}), 400

    try:
        result = upgrade_account(user_id, kind)
    except MiningError as e:
        return error_response(e)

    return jsonify({
        'success': True,
        'upgrade_type': result['upgrade_type'],
        'previous': str(result['previous']),
        'new': str(result['new']),
    })


@upgrades_bp.route('/power', methods=['POST'])
def upgrade_power():
    return _upgrade('power')


@upgrades_bp.route('/duration', methods=['POST'])
def upgrade_duration():
    return _upgrade('duration')
