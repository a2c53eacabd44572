"""
prompt.py
======================

問題生成用のテキストを組み立てるモジュール。

- build_generation_prompt(): 外部の生成ツールに貼り付ける短い依頼文
- build_gemini_prompt(): generator.py が Gemini に直接渡すプロンプト（ノート本文入り）
- INSTRUCTIONS_TEMPLATE: .quiz/INSTRUCTIONS.md として配置する JSON スキーマの説明書
"""

from __future__ import annotations

from typing import List

from .models import Preferences

INSTRUCTIONS_TEMPLATE = """# Vault Recall - Question Authoring Guide

Vault Recall turns the notes in this vault into spaced-recall quizzes.
Question generators only write questions; streaks, history and the question
store are maintained by the app.

## Files in `.quiz/`

| File             | Who writes it        |
|------------------|----------------------|
| `config.json`    | app (read it for preferences) |
| `questions.json` | app (via import)     |
| `history.json`   | app                  |
| `pending.json`   | app                  |
| `import.json`    | **you**              |

Write new questions to `import.json`:

```json
{"questions": [ ... ]}
```

The app validates every question before importing. If any question is
invalid, nothing is imported and the errors name the offending entry
("Question 2: ...").

## Common fields

- `id`: `q_` + 6 random lowercase letters/digits, unique
- `sourceNote`: vault-relative path of the note, e.g. `School/Algorithms/Graph Traversal.md`
- `createdAt`: ISO 8601 timestamp
- `type`: `multiple_choice`, `fill_blank` or `true_false`
- `difficulty`: `easy`, `medium` or `hard`
- `question`: prompt text
- `explanation`: shown after answering
- `relatedConcepts` (optional): array of strings

## multiple_choice

```json
{
  "type": "multiple_choice",
  "question": "What is the primary advantage of SSDs over HDDs?",
  "correctAnswer": "Lower latency",
  "incorrectAnswers": ["Lower cost per gigabyte", "Higher capacity", "Better heat tolerance"],
  "explanation": "..."
}
```

Exactly 3 incorrect answers. Option order is randomised by the app.

## fill_blank

```json
{
  "type": "fill_blank",
  "question": "BFS uses a ___ while DFS uses a ___.",
  "blanks": ["queue", "stack"],
  "explanation": "..."
}
```

Use `___` (three underscores) for each blank. The number of `___` must equal
the length of `blanks`; answers map to blanks left to right. Answers are
compared case-insensitively after trimming whitespace.

## true_false

```json
{
  "type": "true_false",
  "question": "L1 cache is slower but larger than L2 cache.",
  "correctAnswer": false,
  "explanation": "..."
}
```

`correctAnswer` must be a JSON boolean, not the string `"true"`.

## Guidelines

- Follow `questionsPerNote`, `questionTypes`, `difficulty` and `customPrompt` from `config.json`
- Only ask about what the note actually says (plus related concepts when enabled)
- Do not give the answer away in the question
- Do not duplicate questions for notes that already have some
"""


def build_generation_prompt(note_path: str, preferences: Preferences) -> str:
    """外部ツールへ貼り付ける依頼文"""
    lines: List[str] = [
        "Read .quiz/INSTRUCTIONS.md for instructions, then generate questions for the following note:",
        "",
        f"Note: {note_path}",
        "",
        "Preferences:",
        f"- Questions: {preferences.questions_per_note}",
        f"- Types: {', '.join(preferences.question_types)}",
        f"- Difficulty: {preferences.difficulty}",
    ]

    if preferences.custom_prompt:
        lines.extend(["", f"Additional instructions: {preferences.custom_prompt}"])

    return "\n".join(lines)


def build_gemini_prompt(note_path: str, note_text: str, preferences: Preferences) -> str:
    """
    Gemini に直接渡すプロンプト。
    出力は {"questions": [...]} の JSON オブジェクト 1 つだけを求める。
    """
    related = (
        "You may add questions about closely related concepts that the note implies."
        if preferences.include_related_concepts
        else "Only ask about facts stated in the note."
    )
    extra = f"\nAdditional instructions: {preferences.custom_prompt}\n" if preferences.custom_prompt else ""

    return f"""
You write high-quality active-recall quiz questions from a student's notes.

# Note
Path: {note_path}

{note_text}

# Requirements
- Write {preferences.questions_per_note} questions.
- Allowed types: {", ".join(preferences.question_types)}.
- Difficulty: {preferences.difficulty}.
- {related}
{extra}
# Schemas
- multiple_choice: "correctAnswer" (string) and "incorrectAnswers" (exactly 3 strings)
- fill_blank: "question" contains one "___" per blank, "blanks" lists the answers left to right
- true_false: "correctAnswer" is a JSON boolean

Every question also has "type", "difficulty", "question", "explanation" and
optionally "relatedConcepts" (array of strings).

# Output format
Return exactly one JSON object and nothing else:

{{"questions": [ ... ]}}
"""
