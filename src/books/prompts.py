"""
BookVetting - Evaluation Prompt Template
========================================

The single prompt used to score a book. Placeholders: {title},
{author}, {genre}, {content}. The model must answer with one JSON
object matching the keys listed in the template.

Usage:
    from src.books.prompts import build_evaluation_prompt

    prompt = build_evaluation_prompt(
        title="Mere Christianity",
        author="C.S. Lewis",
        content=description,
    )
"""

from typing import Optional


EVALUATION_PROMPT = """You are a theologian reviewing books for a Christian counseling resource library.

Evaluate how well the following book aligns with historic, orthodox Christian teaching as found in Scripture.

BOOK:
Title: {title}
Author: {author}
Genre: {genre}

CONTENT:
{content}

INSTRUCTIONS:
1. Judge the book's teaching against Scripture, not against any single denomination
2. For fiction, judge the worldview the story commends rather than what characters say or do
3. Score each doctrine category the content lets you assess; omit the rest
4. Flag mature content (graphic violence, sexual content, strong language) and say why
5. Base every claim on the content provided; do not invent details about the book

SCORING:
- 90-100: Fully consistent with biblical teaching; suitable for everyone
- 70-89: Broadly consistent, with minor concerns or gaps
- 0-69: Teaching that conflicts with Scripture in significant ways

Respond with ONLY a JSON object in this exact shape:
{{
  "biblicalAlignmentScore": <number 0-100>,
  "genreTag": "<theology|devotional|fiction|biography|counseling|family|general>",
  "theologicalSummary": "<2-3 sentence summary>",
  "doctrineCategoryScores": [
    {{"category": "<doctrine>", "score": <number 0-100>, "notes": "<short note>"}}
  ],
  "denominationalTags": ["<tradition>"],
  "matureContent": <true|false>,
  "matureContentReason": "<reason or null>",
  "theologicalStrengths": ["<strength>"],
  "theologicalConcerns": ["<concern>"],
  "scoringReasoning": "<why this score>",
  "scriptureComparisonNotes": "<relevant passages and how the book compares>"
}}"""


def build_evaluation_prompt(
    title: str,
    author: str,
    content: str,
    genre: Optional[str] = None,
    template: str = EVALUATION_PROMPT,
) -> str:
    """Fill the evaluation template."""
    return template.format(
        title=title,
        author=author,
        genre=genre or "Unknown",
        content=content,
    )
