from datetime import datetime, timezone


def utcnow():
    """服务端唯一时间来源（naive UTC），不接受客户端上报的时间"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hours_between(start, end):
    return (end - start).total_seconds() / 3600
