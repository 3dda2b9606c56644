"""Prompt builders for the three pipeline steps.

Each step asks the model for a single JSON object; the schema block at the end of
every user prompt is what the executor validates against.
"""

from __future__ import annotations

import json
from typing import Optional, Sequence

from legal.frameworks import framework_name, language_name
from schemas.internal.legal import (
    LegalAnalysisResult,
    ModificationRecord,
)
from schemas.internal.steps import StepName

SYSTEM_PROMPTS: dict[StepName, str] = {
    "legal_analysis": (
        "你是一个专业的法律合规分析师，专门分析合同的法律合规性。请严格按照JSON格式返回分析结果。"
    ),
    "optimization": (
        "你是一个专业的合同优化专家，专门根据法律分析结果优化合同条款。请严格按照JSON格式返回优化结果。"
    ),
    "translation": (
        "你是一个专业的法律翻译专家，专门翻译法律合同。请严格按照JSON格式返回翻译结果。"
    ),
}

_LEGAL_ANALYSIS_SCHEMA = """{
  "compliance_score": 分数(0-100的整数),
  "risk_level": "low|medium|high|critical",
  "risk_factors": ["风险1", "风险2"],
  "suggestions": [
    {"suggestion": "建议内容", "legal_basis": "具体法律条文引用"}
  ],
  "matched_articles": [
    {
      "article": "法条名称和编号",
      "description": "法条内容描述",
      "compliance": true,
      "original_text": "法条原文",
      "contract_reference": "与合同的具体关联",
      "analysis": "详细分析说明"
    }
  ],
  "analysis_summary": "分析摘要"
}"""

_OPTIMIZATION_SCHEMA = """{
  "optimized_text": "优化后的合同全文",
  "modifications": [
    {
      "type": "add|modify|delete",
      "original_text": "原文内容（必须与合同原文完全一致；新增条款留空）",
      "optimized_text": "修改后的内容（删除时留空）",
      "legal_basis": "法律依据（具体条文）",
      "reason": "修改原因",
      "highlight_type": "modify|add|delete",
      "position": "修改位置描述"
    }
  ],
  "summary": "优化总结"
}"""

_TRANSLATION_SCHEMA = """{
  "target_language": "%s",
  "translated_text": "翻译后的合同全文",
  "translated_modifications": [
    {
      "original_text": "原文",
      "translated_text": "翻译后",
      "legal_basis": "法律依据（具体条文）",
      "reason": "修改原因"
    }
  ],
  "translated_legal_basis": "翻译后的法律依据总结"
}"""


def _framework_clause(primary: str, secondary: Optional[str]) -> str:
    clause = f"{framework_name(primary)}"
    if secondary:
        clause += f"和{framework_name(secondary)}"
    return clause


def build_legal_analysis_prompt(
    text: str, primary: str, secondary: Optional[str] = None
) -> str:
    return (
        f"请分析以下国际合同的法律合规性，确保同时符合{_framework_clause(primary, secondary)}。\n\n"
        f"合同内容：\n{text}\n\n"
        "分析要求：\n"
        "1. 评估合同合规性（0-100分）\n"
        "2. 识别风险因素\n"
        "3. 提供改进建议（必须引用具体法律条文）\n"
        "4. 匹配相关法条并提供详细分析\n\n"
        f"请只返回一个JSON对象：\n{_LEGAL_ANALYSIS_SCHEMA}"
    )


def build_optimization_prompt(
    text: str,
    analysis: LegalAnalysisResult,
    primary: str,
    secondary: Optional[str] = None,
) -> str:
    factors = "、".join(analysis.risk_factors) or "无"
    suggestions = "；".join(item.suggestion for item in analysis.suggestions) or "无"
    return (
        f"基于以下法律分析结果，请优化合同以确保同时符合{_framework_clause(primary, secondary)}。\n\n"
        f"原始合同：\n{text}\n\n"
        "法律分析结果：\n"
        f"- 合规评分：{analysis.compliance_score}\n"
        f"- 风险等级：{analysis.risk_level}\n"
        f"- 风险因素：{factors}\n"
        f"- 改进建议：{suggestions}\n\n"
        "要求：\n"
        "1. 提供优化后的合同全文\n"
        "2. 列出具体修改点，每个修改必须引用具体的法律依据\n"
        "3. original_text 必须逐字摘自原始合同，便于定位高亮\n"
        "4. 新增条款的 original_text 留空，并在 position 中说明插入位置\n\n"
        f"请只返回一个JSON对象：\n{_OPTIMIZATION_SCHEMA}"
    )


def build_translation_prompt(
    optimized_text: str,
    modifications: Sequence[ModificationRecord],
    target_language: str,
    analysis: Optional[LegalAnalysisResult],
    primary: str,
    secondary: Optional[str] = None,
) -> str:
    background = f"- 主要法律体系：{framework_name(primary)}\n"
    if secondary:
        background += f"- 次要法律体系：{framework_name(secondary)}\n"
    if analysis is not None and analysis.matched_articles:
        articles = "、".join(item.article for item in analysis.matched_articles if item.article)
        if articles:
            background += f"- 涉及的主要法条：{articles}\n"
    payload = [
        {
            "original_text": item.original_text,
            "optimized_text": item.optimized_text,
            "legal_basis": item.legal_basis,
            "reason": item.reason,
        }
        for item in modifications
    ]
    return (
        f"请将以下优化后的合同翻译成{language_name(target_language)}，确保法律术语准确。\n\n"
        f"合同内容：\n{optimized_text}\n\n"
        f"法律背景：\n{background}\n"
        f"需要一并翻译的修改建议：\n{json.dumps(payload, ensure_ascii=False, indent=2)}\n\n"
        "要求：\n"
        "1. 保持法律条款的准确性和专业性\n"
        f"2. 确保术语符合{_framework_clause(primary, secondary)}体系\n"
        "3. 保留所有法律引用和条款编号\n"
        "4. 翻译后的修改建议也要完整准确\n\n"
        f"请只返回一个JSON对象：\n{_TRANSLATION_SCHEMA % target_language}"
    )


__all__ = [
    "SYSTEM_PROMPTS",
    "build_legal_analysis_prompt",
    "build_optimization_prompt",
    "build_translation_prompt",
]
