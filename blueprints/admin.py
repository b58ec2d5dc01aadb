from flask import Blueprint, request, jsonify, current_app, g
from utils.auth_utils import jwt_required
from utils.distribution import distribute_server_rewards, is_distribution_enabled, set_distribution_enabled
from utils.request_utils import amounts_to_json

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


# Admin管理员手动触发服务器收益发放
@admin_bp.route('/distribute', methods=['POST'])
@jwt_required
def manual_distribute():
    current_app.logger.info(f"Manual server reward distribution triggered by {g.admin}")
    report = distribute_server_rewards()
    return jsonify({
        'success': True,
        'accounts_updated': report['accounts_updated'],
        'accounts_failed': report['accounts_failed'],
        'totals': amounts_to_json(report['totals']),
        'assets_processed': report['assets_processed'],
        'servers_count': report['servers_count'],
    })


@admin_bp.route('/distribute/config', methods=['GET'])
def get_distribute_config():
    return jsonify({'success': True, 'is_task_enabled': is_distribution_enabled()})


# Admin配置接口：控制定时发放开关
@admin_bp.route('/distribute/config', methods=['POST'])
@jwt_required
def update_distribute_config():
    data = request.get_json(silent=True) or {}
    if 'is_task_enabled' not in data:
        return jsonify({'success': False, 'message': 'is_task_enabled is required'}), 400

    enabled = set_distribution_enabled(bool(data['is_task_enabled']))
    return jsonify({'success': True, 'is_task_enabled': enabled})
