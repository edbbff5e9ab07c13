# sayhi/clock.py
import time


def now_ms() -> int:
    """当前毫秒时间戳，所有时间字段都用这个单位"""
    return int(time.time() * 1000)
