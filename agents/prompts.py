"""Prompt builders for the coaching conversation."""
from __future__ import annotations

from textwrap import dedent
from typing import Dict, List, Sequence

from agents.types import RubricContext, StarAnalysis
from storage.models import SessionRecord, TurnRecord

Message = Dict[str, str]

LANGUAGE_INSTRUCTIONS: Dict[str, str] = {
    "en": "Respond in British English only. No explanations.",
    "id": "Respons dalam Bahasa Indonesia saja. Tidak ada penjelasan.",
    "ms": "Respons dalam Bahasa Melayu sahaja. Tiada penjelasan.",
    "th": "ตอบเป็นภาษาไทยเท่านั้น ห้ามอธิบาย",
    "vi": "Chỉ trả lời bằng tiếng Việt. Không giải thích.",
    "fil": "Tumugon sa Filipino lamang. Walang paliwanag.",
    "zh-sg": "只用中文回答。不要解释。",
}


def language_instruction(language: str) -> str:
    return LANGUAGE_INSTRUCTIONS.get(language, LANGUAGE_INSTRUCTIONS["en"])


def _system(language: str, role: str) -> Message:
    return {"role": "system", "content": f"{role}\n{language_instruction(language)}"}


def _label(value: str) -> str:
    return value.replace("-", " ").replace("_", " ")


def introduction_messages(session: SessionRecord) -> List[Message]:
    prompt = dedent(
        f"""
        Create a warm, professional coaching introduction for an interview preparation session.

        Session details:
        - Job position: {session.job_position}
        - Company: {session.company_name or 'Not specified'}
        - Interview stage: {_label(session.interview_stage)}
        - Industry: {session.industry or 'General'}
        - Experience level: {session.experience_level}
        - Questions planned: {session.total_questions}

        Welcome the candidate, explain that each answer gets STAR feedback, and encourage them.
        Keep it to 2-3 sentences. Return only the introduction text.
        """
    ).strip()
    return [_system(session.language, "You are a supportive interview coach."), {"role": "user", "content": prompt}]


def question_messages(
    session: SessionRecord,
    question_number: int,
    category: str,
    recent_turns: Sequence[TurnRecord],
    asked: Sequence[str],
) -> List[Message]:
    history = "\n".join(f"{turn.role}: {turn.content}" for turn in recent_turns[-4:])
    asked_block = "\n".join(f"- {text}" for text in asked) or "- none yet"
    prompt = dedent(
        f"""
        Generate interview question {question_number} of {session.total_questions} for a coaching session.

        Context:
        - Job position: {session.job_position}
        - Company: {session.company_name or 'Not specified'}
        - Industry: {session.industry or 'General'}
        - Experience level: {session.experience_level}
        - Interview stage: {_label(session.interview_stage)}
        - Focus category: {category}

        Questions already asked:
        {asked_block}
        """
    ).strip()
    if history:
        prompt += "\n\nRecent conversation:\n" + history
    prompt += (
        "\n\nReturn exactly one realistic question that suits the STAR method, "
        "wrapped in double quotes, with no reasoning or placeholders."
    )
    return [_system(session.language, "You are a professional interviewer."), {"role": "user", "content": prompt}]


def star_evaluation_messages(text: str, ctx: RubricContext) -> List[Message]:
    prompt = dedent(
        f"""
        Analyse this interview answer with the STAR method for a {_label(ctx.interview_stage)} interview.

        Question: "{ctx.question_text}"
        Answer: "{text}"

        Context:
        - Job position: {ctx.job_position}
        - Industry: {ctx.industry or 'General'}
        - Experience level: {ctx.experience_level}

        Return JSON only, in this shape:
        {{
          "situation": {{"score": 1-5, "feedback": "...", "improvementAreas": ["..."]}},
          "task": {{"score": 1-5, "feedback": "...", "improvementAreas": ["..."]}},
          "action": {{"score": 1-5, "feedback": "...", "improvementAreas": ["..."]}},
          "result": {{"score": 1-5, "feedback": "...", "improvementAreas": ["..."]}},
          "overallFlow": {{"score": 1-5, "feedback": "...", "improvementAreas": ["..."]}}
        }}

        Scores: 5 excellent (clear, specific, measurable), 4 good, 3 average,
        2 below average, 1 poor or missing.
        """
    ).strip()
    return [_system(ctx.language, "You are an interview coach."), {"role": "user", "content": prompt}]


def feedback_messages(text: str, analysis: StarAnalysis, ctx: RubricContext) -> List[Message]:
    prompt = dedent(
        f"""
        Write coaching feedback for this interview answer.

        Answer: "{text}"

        STAR scores:
        - Situation: {analysis.situation.score}/5
        - Task: {analysis.task.score}/5
        - Action: {analysis.action.score}/5
        - Result: {analysis.result.score}/5
        - Overall flow: {analysis.overall_flow.score}/5

        Context: {ctx.job_position}, {ctx.industry or 'general'} industry, {ctx.experience_level} level,
        {_label(ctx.interview_stage)} stage.

        Give 2-3 specific coaching tips, one per line, each starting with "Tip:".
        Be constructive and encouraging.
        """
    ).strip()
    return [_system(ctx.language, "You are a supportive interview coach."), {"role": "user", "content": prompt}]


def model_answer_messages(text: str, ctx: RubricContext) -> List[Message]:
    prompt = dedent(
        f"""
        Create an exemplary STAR answer for a {_label(ctx.interview_stage)} interview question.

        Question: "{ctx.question_text}"
        Candidate's theme: "{text[:200]}"

        Context: {ctx.job_position}, {ctx.industry or 'general'} industry, {ctx.experience_level} level.

        Return JSON only:
        {{
          "situation": "2-3 sentences of context",
          "task": "1-2 sentences on the responsibility",
          "action": "the concrete steps taken",
          "result": "quantified outcome and impact",
          "industryInsights": "why this approach works in the industry",
          "alternativeApproaches": ["another valid approach"]
        }}
        """
    ).strip()
    return [_system(ctx.language, "You are an interview coach."), {"role": "user", "content": prompt}]


def summary_messages(session: SessionRecord, answered: int, average_score: float) -> List[Message]:
    prompt = dedent(
        f"""
        Write an encouraging closing summary for an interview coaching session.

        - Questions completed: {answered}
        - Average STAR score: {average_score:.1f}/5
        - Interview stage: {_label(session.interview_stage)}
        - Job position: {session.job_position}
        - Industry: {session.industry or 'General'}

        Cover key achievements, main strengths, priority improvements and next steps.
        Keep it positive, specific and under 150 words. Return only the summary.
        """
    ).strip()
    return [_system(session.language, "You are a supportive interview coach."), {"role": "user", "content": prompt}]
