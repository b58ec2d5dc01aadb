from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from utils.clock import hours_between

HOURS_PER_DAY = Decimal(24)

# 各币种的入账精度：BOLT 取整（向下），USDT 两位，TON 四位
CURRENCY_PRECISION = {
    'BOLT': (Decimal('1'), ROUND_FLOOR),
    'USDT': (Decimal('0.01'), ROUND_HALF_UP),
    'TON': (Decimal('0.0001'), ROUND_HALF_UP),
}
CURRENCIES = tuple(CURRENCY_PRECISION)

# 先收敛掉除法带来的尾差，再按币种精度取整
_SETTLE_QUANTUM = Decimal('0.000000000001')


def to_decimal(value):
    if value is None:
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def zero_amounts():
    return {currency: Decimal('0') for currency in CURRENCIES}


def round_amount(currency, amount):
    quantum, rounding = CURRENCY_PRECISION[currency]
    settled = to_decimal(amount).quantize(_SETTLE_QUANTUM, rounding=ROUND_HALF_UP)
    return settled.quantize(quantum, rounding=rounding)


def elapsed_hours(last_claim_at, now):
    return to_decimal(round(hours_between(last_claim_at, now), 9))


def calculate_claim(last_claim_at, now, daily_yields, min_hours=1, max_hours=24):
    """
    计算单台服务器的可领取收益
    :param last_claim_at: 上次领取时间（水位线）
    :param now: 服务端当前时间
    :param daily_yields: {币种: 日收益}
    :param min_hours: 最短领取间隔，不足则不可领取
    :param max_hours: 单次最多累计小时数，None 表示不封顶
    :return: None（不可领取）或 (各币种金额, 实际计入小时数)
    """
    hours = elapsed_hours(last_claim_at, now)
    if hours < to_decimal(min_hours):
        return None

    claimable_hours = hours if max_hours is None else min(hours, to_decimal(max_hours))

    amounts = {}
    for currency in CURRENCIES:
        daily_yield = to_decimal(daily_yields.get(currency))
        amounts[currency] = round_amount(currency, daily_yield * claimable_hours / HOURS_PER_DAY)
    return amounts, claimable_hours


def pending_rewards(servers, now, min_hours=1, max_hours=24):
    """预览：按即时领取规则汇总所有服务器的待领取收益，不修改任何状态"""
    totals = zero_amounts()
    earliest = None
    claimable_count = 0

    for server in servers:
        watermark = server.watermark
        if earliest is None or watermark < earliest:
            earliest = watermark

        claim = calculate_claim(watermark, now, server.daily_yields(), min_hours, max_hours)
        if claim is None:
            continue
        amounts, _ = claim
        for currency, amount in amounts.items():
            totals[currency] += amount
        claimable_count += 1

    hours_since_claim = int(hours_between(earliest, now)) if earliest else 0
    return {
        'pending': totals,
        'hours_since_claim': max(hours_since_claim, 0),
        'claimable_servers': claimable_count,
        'can_claim': claimable_count > 0,
    }
