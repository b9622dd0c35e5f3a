import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from offernavi.assistant.entity_extractor import (
    extract_company,
    extract_time,
    extract_position,
    extract_interview_entities,
    extract_question_entities,
)
from offernavi.assistant.models import InterviewEntities


def test_company_after_motion_particle():
    assert extract_company("我要去字节跳动面试") == "字节跳动"


def test_company_with_suffix():
    assert extract_company("明天在阿里巴巴公司面试") == "阿里巴巴"


def test_company_before_interview_keyword():
    assert extract_company("腾讯面试时间是2025年6月15日") == "腾讯"
    assert extract_company("美团的面试") == "美团"


def test_company_missing():
    assert extract_company("你好") is None


def test_time_last_matching_pattern_wins():
    # 钟点模式排在相对日期之后，覆盖 "明天"
    assert extract_time("明天下午2点") == "2点"
    assert extract_time("6月15日14:00") == "6月15日"
    assert extract_time("2025年6月15日") == "2025年6月15"


def test_time_single_marker():
    assert extract_time("字节跳动面试安排在明天") == "明天"
    assert extract_time("没有时间") is None


def test_position():
    assert extract_position("后端开发工程师") == "后端开发工程师"
    assert extract_position("产品岗位") == "产品岗位"
    assert extract_position("还没定") is None


def test_interview_entities():
    entities = extract_interview_entities("字节跳动面试安排在明天")
    assert entities == InterviewEntities(company="字节跳动", time="明天", position=None)


def test_real_question_entities():
    entities = extract_question_entities('刚面试完，面试官问了问题："请做个自我介绍"')
    assert entities.is_real is True
    assert entities.question == "请做个自我介绍"


def test_mock_question_entities():
    entities = extract_question_entities("帮我加一道面试题，问题：“为什么选择我们公司”")
    assert entities.is_real is False
    assert entities.question == "为什么选择我们公司"


def test_question_without_quoted_content():
    entities = extract_question_entities("帮我记一道面试题")
    assert entities.is_real is False
    assert entities.question is None
