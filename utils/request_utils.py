from flask import jsonify


def parse_user_id(value):
    """user_id 由上游身份服务提供，这里只做类型校验"""
    if isinstance(value, bool):
        return None
    try:
        user_id = int(value)
    except (TypeError, ValueError):
        return None
    return user_id if user_id > 0 else None


def error_response(error):
    return jsonify(error.to_dict()), error.status_code


def amounts_to_json(amounts):
    return {currency: str(amount) for currency, amount in amounts.items()}
