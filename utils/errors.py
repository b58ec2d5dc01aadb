class MiningError(Exception):
    """业务异常基类，blueprint 统一转换成 JSON 响应"""
    status_code = 400
    code = 'mining_error'

    def __init__(self, message=None):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self):
        return {'success': False, 'error': self.code, 'message': self.message}


class NotFound(MiningError):
    status_code = 404
    code = 'not_found'


class SessionAlreadyActive(MiningError):
    status_code = 409
    code = 'session_already_active'


class SessionNotComplete(MiningError):
    code = 'session_not_complete'


class MaxTierReached(MiningError):
    code = 'max_tier_reached'


class UpgradeConflict(MiningError):
    status_code = 409
    code = 'upgrade_conflict'


class ServerSoldOut(MiningError):
    code = 'server_sold_out'


class LedgerWriteFailure(MiningError):
    status_code = 500
    code = 'ledger_write_failure'
