"""Deterministic coaching lines used when no AI provider answers."""
from __future__ import annotations

from typing import Dict, List, Optional

LANGUAGE_TEMPLATES: Dict[str, Dict[str, str]] = {
    "en": {
        "introduction": (
            "Welcome to your {stage} practice for the {position} role. I'll ask you {total} questions "
            "and give STAR feedback on each answer. Take your time and answer as you would in the real interview."
        ),
        "follow_up": "Thank you for that answer. Let's move on to the next question.",
        "summary": (
            "Well done on completing your {stage} practice. You answered {answered} questions with an "
            "average STAR score of {average}/5. Review the feedback on each answer and practise your weakest areas."
        ),
    },
    "ms": {
        "introduction": (
            "Selamat datang ke latihan {stage} untuk jawatan {position}. Saya akan bertanya {total} soalan "
            "dan memberi maklum balas STAR untuk setiap jawapan."
        ),
        "follow_up": "Terima kasih atas jawapan anda. Mari kita teruskan ke soalan seterusnya.",
        "summary": (
            "Tahniah kerana melengkapkan latihan {stage}. Anda menjawab {answered} soalan dengan purata "
            "skor STAR {average}/5."
        ),
    },
    "id": {
        "introduction": (
            "Selamat datang di latihan {stage} untuk posisi {position}. Saya akan mengajukan {total} pertanyaan "
            "dan memberikan umpan balik STAR untuk setiap jawaban."
        ),
        "follow_up": "Terima kasih atas jawaban Anda. Mari lanjut ke pertanyaan berikutnya.",
        "summary": (
            "Selamat, Anda telah menyelesaikan latihan {stage}. Anda menjawab {answered} pertanyaan dengan "
            "rata-rata skor STAR {average}/5."
        ),
    },
    "th": {
        "introduction": "ยินดีต้อนรับสู่การฝึกสัมภาษณ์ {stage} สำหรับตำแหน่ง {position} เราจะมีคำถาม {total} ข้อ พร้อมคำแนะนำแบบ STAR",
        "follow_up": "ขอบคุณสำหรับคำตอบ มาต่อกันที่คำถามถัดไป",
        "summary": "ยินดีด้วยที่ฝึก {stage} จบแล้ว คุณตอบ {answered} ข้อ คะแนน STAR เฉลี่ย {average}/5",
    },
    "vi": {
        "introduction": (
            "Chào mừng bạn đến với buổi luyện tập {stage} cho vị trí {position}. Tôi sẽ hỏi {total} câu "
            "và nhận xét theo phương pháp STAR."
        ),
        "follow_up": "Cảm ơn câu trả lời của bạn. Chúng ta chuyển sang câu hỏi tiếp theo.",
        "summary": "Chúc mừng bạn đã hoàn thành buổi luyện tập {stage}. Bạn đã trả lời {answered} câu, điểm STAR trung bình {average}/5.",
    },
    "fil": {
        "introduction": (
            "Maligayang pagdating sa iyong {stage} practice para sa posisyong {position}. Magtatanong ako ng "
            "{total} tanong at magbibigay ng STAR feedback."
        ),
        "follow_up": "Salamat sa iyong sagot. Tumuloy tayo sa susunod na tanong.",
        "summary": "Mahusay! Natapos mo ang {stage} practice. Sumagot ka ng {answered} tanong, average STAR score {average}/5.",
    },
    "zh-sg": {
        "introduction": "欢迎参加{position}职位的{stage}练习。我会问您{total}个问题，并用STAR方法给出反馈。",
        "follow_up": "谢谢您的回答。我们继续下一个问题。",
        "summary": "恭喜您完成{stage}练习。您回答了{answered}个问题，STAR平均分为{average}/5。",
    },
}

STAGE_QUESTIONS: Dict[str, List[str]] = {
    "phone-screening": [
        "Tell me about yourself and why you're interested in this {position} role.",
        "What do you know about our company and why do you want to work here?",
        "Describe a recent achievement you're proud of and what you did to make it happen.",
    ],
    "functional-team": [
        "Describe a time when you had to collaborate with a difficult team member.",
        "Tell me about a project where you had to work closely with other departments.",
        "Give an example of when you helped a colleague who was struggling.",
    ],
    "hiring-manager": [
        "Tell me about a time when you had to make a difficult decision with limited information.",
        "Describe a situation where you had to manage competing priorities.",
        "Give me an example of when you took ownership of a problem outside your remit.",
    ],
    "subject-matter-expertise": [
        "Walk me through the most technically challenging problem you've solved as a {position}.",
        "Describe a time you had to learn a new skill or tool quickly to deliver a result.",
        "Tell me about a time you improved a process using your expertise.",
    ],
    "executive-final": [
        "Tell me about a time you set a long-term direction for a team or product.",
        "Describe a situation where you had to influence senior stakeholders.",
        "Give an example of a strategic decision that did not go to plan and what you learnt.",
    ],
}

CATEGORY_ROTATION = ("leadership", "problem-solving", "teamwork", "communication")

CATEGORY_TEMPLATES: Dict[str, str] = {
    "leadership": "Tell me about a time when you had to lead a team through a difficult situation as a {position}.",
    "problem-solving": "Describe a complex problem you solved in your work as a {position}. How did you approach it?",
    "teamwork": "Give me an example of a successful team project you contributed to. What was your role?",
    "communication": "Tell me about a time you had to explain something complex to someone without your background.",
}

_DIFFICULTY = {"entry": "easy", "junior": "easy", "mid": "medium", "senior": "hard", "executive": "hard"}


def _templates(language: str) -> Dict[str, str]:
    return LANGUAGE_TEMPLATES.get(language, LANGUAGE_TEMPLATES["en"])


def stage_label(stage: str) -> str:
    return stage.replace("-", " ")


def introduction(language: str, *, position: str, stage: str, total: int) -> str:
    return _templates(language)["introduction"].format(position=position, stage=stage_label(stage), total=total)


def follow_up(language: str) -> str:
    return _templates(language)["follow_up"]


def summary(language: str, *, stage: str, answered: int, average: float) -> str:
    return _templates(language)["summary"].format(stage=stage_label(stage), answered=answered, average=f"{average:.1f}")


def category_for(question_number: int) -> str:
    return CATEGORY_ROTATION[(max(question_number, 1) - 1) % len(CATEGORY_ROTATION)]


def difficulty_for(experience_level: str) -> str:
    return _DIFFICULTY.get(experience_level.lower(), "medium")


def question(
    question_number: int,
    *,
    position: str,
    stage: str,
    asked: Optional[List[str]] = None,
) -> str:
    """Stage question for early numbers, then the rotating category template.

    Never returns an empty string and avoids repeating an already asked line
    while an unused one remains.
    """

    seen = set(asked or [])
    pool = [q.format(position=position) for q in STAGE_QUESTIONS.get(stage, STAGE_QUESTIONS["phone-screening"])]
    candidates: List[str] = []
    index = question_number - 1
    if 0 <= index < len(pool):
        candidates.append(pool[index])
    candidates.append(CATEGORY_TEMPLATES[category_for(question_number)].format(position=position))
    candidates.extend(pool)
    candidates.extend(template.format(position=position) for template in CATEGORY_TEMPLATES.values())
    for candidate in candidates:
        if candidate not in seen:
            return candidate
    return candidates[0]


__all__ = [
    "CATEGORY_ROTATION",
    "LANGUAGE_TEMPLATES",
    "STAGE_QUESTIONS",
    "category_for",
    "difficulty_for",
    "follow_up",
    "introduction",
    "question",
    "stage_label",
    "summary",
]
