#!/usr/bin/env python3
"""
中文日期时间解析
把 "明天下午2点"、"6月15日14:00"、"2025年6月15日" 这类短语解析为具体时间
"""

import re
import logging
from typing import Dict, List, Optional, Tuple
from datetime import datetime, timedelta
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

DEFAULT_HOUR = 10  # 没有写具体钟点时默认上午10点
DEFAULT_MINUTE = 0

CLOCK_PATTERN = re.compile(r'(\d{1,2})[点:：](\d{0,2})')
AFTERNOON_MARKERS = ('下午', '晚上')
MORNING_MARKERS = ('上午', '早上')

WEEKDAY_NAMES = ('星期一', '星期二', '星期三', '星期四', '星期五', '星期六', '星期日')


class ChineseDateTimeParser:
    """中文日期时间解析器"""

    def __init__(self, now: Optional[datetime] = None):
        self._now = now
        self.relative_markers = self._initialize_relative_markers()
        self.absolute_patterns = self._initialize_absolute_patterns()

    @property
    def now(self) -> datetime:
        return self._now or datetime.now()

    def _initialize_relative_markers(self) -> List[Tuple[str, int]]:
        """相对日期标记，按优先级排列：(标记, 偏移天数)"""
        return [
            ('明天', 1),
            ('后天', 2),
            ('下周', 7),
        ]

    def _initialize_absolute_patterns(self) -> List[Dict]:
        """绝对日期模式，按优先级排列"""
        return [
            {
                'pattern': re.compile(r'(\d{1,2})月(\d{1,2})[日号]'),
                'type': 'month_day',
                'handler': self._parse_month_day
            },
            {
                'pattern': re.compile(r'(\d{4})[-年](\d{1,2})[-月](\d{1,2})'),
                'type': 'year_month_day',
                'handler': self._parse_year_month_day
            },
        ]

    def parse_datetime(self, phrase: str) -> Optional[datetime]:
        """解析日期时间短语，无法识别时返回 None"""
        if not phrase:
            return None

        now = self.now
        for marker, days in self.relative_markers:
            if marker in phrase:
                base_date = now + relativedelta(days=days)
                return self.parse_time_from_string(phrase, base_date)

        for pattern_info in self.absolute_patterns:
            match = pattern_info['pattern'].search(phrase)
            if not match:
                continue
            try:
                base_date = pattern_info['handler'](match, now)
            except ValueError as e:
                logger.debug(f"Invalid {pattern_info['type']} date in '{phrase}': {e}")
                return None
            return self.parse_time_from_string(phrase, base_date)

        return None

    def _parse_month_day(self, match: re.Match, now: datetime) -> datetime:
        # 只给了月日时总是取当前年份，不处理跨年
        return datetime(now.year, int(match.group(1)), int(match.group(2)))

    def _parse_year_month_day(self, match: re.Match, now: datetime) -> datetime:
        return datetime(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    @staticmethod
    def parse_time_from_string(phrase: str, base_date: datetime) -> datetime:
        """在基准日期上解析钟点，秒和微秒清零"""
        hour, minute = DEFAULT_HOUR, DEFAULT_MINUTE

        match = CLOCK_PATTERN.search(phrase)
        if match:
            hour = int(match.group(1))
            minute = int(match.group(2)) if match.group(2) else 0

        if any(marker in phrase for marker in AFTERNOON_MARKERS):
            if hour < 12:
                hour += 12
        elif any(marker in phrase for marker in MORNING_MARKERS):
            if hour == 12:
                hour = 0

        # 超出范围的钟点顺延到后面的日期
        midnight = base_date.replace(hour=0, minute=0, second=0, microsecond=0)
        return midnight + timedelta(hours=hour, minutes=minute)


def parse_datetime(phrase: str, now: Optional[datetime] = None) -> Optional[datetime]:
    return ChineseDateTimeParser(now).parse_datetime(phrase)


def parse_time_from_string(phrase: str, base_date: datetime) -> datetime:
    return ChineseDateTimeParser.parse_time_from_string(phrase, base_date)


def format_datetime(dt: datetime) -> str:
    """回复中展示用，例如 6月15日星期日 14:00"""
    return f"{dt.month}月{dt.day}日{WEEKDAY_NAMES[dt.weekday()]} {dt.strftime('%H:%M')}"


def to_interview_datetime(dt: datetime) -> str:
    """面试记录中保存的格式 YYYY-MM-DDTHH:MM"""
    return dt.strftime('%Y-%m-%dT%H:%M')


def to_date_key(dt: datetime) -> str:
    return dt.strftime('%Y-%m-%d')
