"""
Chat-completions client for sentiment analysis and question generation.

Without OPENAI_API_KEY, or when the provider call fails for any reason, the
functions here fall back to deterministic keyword/template output and report
`is_mock=True` so callers can tell the difference.
"""
import json
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

SENTIMENTS = ("positive", "negative", "neutral", "mixed")
QUESTION_TYPES = ("short_text", "long_text", "multiple_choice", "rating", "yes_no")

POSITIVE_WORDS = [
    "great", "excellent", "good", "love", "amazing",
    "perfect", "happy", "satisfied", "wonderful", "fantastic",
]
NEGATIVE_WORDS = [
    "bad", "poor", "terrible", "awful", "hate",
    "disappointed", "frustrated", "angry", "unhappy", "worst",
]

MOCK_SUMMARIES = {
    "positive": "User expressed positive feedback and satisfaction with the experience.",
    "negative": "User expressed concerns or dissatisfaction that should be addressed.",
    "mixed": "User provided balanced feedback with both positive aspects and areas for improvement.",
    "neutral": "User provided factual feedback without strong positive or negative sentiment.",
}

ANALYSIS_FALLBACK_ERROR = "OpenAI unavailable, using fallback analysis"
QUESTIONS_FALLBACK_ERROR = "OpenAI unavailable, using fallback questions"

ANALYSIS_SYSTEM_PROMPT = (
    "You are a sentiment analysis expert. Analyze survey responses and provide clear, "
    "concise summaries. Return results as JSON only."
)
QUESTIONS_SYSTEM_PROMPT = (
    "You are a survey design expert. Generate engaging, clear, and relevant survey questions. "
    "Return questions as a JSON array."
)


class AnalysisError(Exception):
    pass


class ProviderError(Exception):
    pass


def mock_analysis(text):
    lower = text.lower()
    # distinct keywords present, not occurrences
    positive = sum(1 for w in POSITIVE_WORDS if w in lower)
    negative = sum(1 for w in NEGATIVE_WORDS if w in lower)

    if positive > negative and positive > 0:
        sentiment = "positive"
    elif negative > positive and negative > 0:
        sentiment = "negative"
    elif positive > 0 and negative > 0:
        sentiment = "mixed"
    else:
        sentiment = "neutral"
    return {"sentiment": sentiment, "summary": MOCK_SUMMARIES[sentiment]}


def mock_questions(title, audience):
    return [
        {"type": "rating", "text": f"How would you rate your overall experience with {title}?",
         "options": None, "required": True},
        {"type": "multiple_choice", "text": f"What aspect is most important to you as a {audience}?",
         "options": ["Quality", "Speed", "Price", "Support"], "required": True},
        {"type": "yes_no", "text": "Would you recommend this to others?", "options": None, "required": True},
        {"type": "long_text", "text": "What could we improve to better serve you?", "options": None, "required": False},
        {"type": "short_text", "text": "How did you hear about us?", "options": None, "required": False},
    ]


def _analysis_prompt(text):
    return (
        "Analyze the sentiment of this survey response and generate a brief summary.\n\n"
        f'Response text: "{text}"\n\n'
        "Return a JSON object with this exact structure:\n"
        '{\n  "sentiment": "positive",\n  "summary": "Brief one-sentence summary of the key points or sentiment"\n}\n\n'
        'Sentiment options: "positive", "negative", "neutral", or "mixed"\n\n'
        "Rules:\n"
        '- "positive" = clearly positive feedback, satisfaction, praise\n'
        '- "negative" = clearly negative feedback, dissatisfaction, complaints\n'
        '- "neutral" = factual, balanced, or no strong sentiment\n'
        '- "mixed" = contains both positive and negative elements\n\n'
        "Summary should be 1-2 sentences maximum and capture the main theme or feeling."
    )


def _questions_prompt(title, audience, description=None):
    lines = [
        "Generate 5 engaging survey questions for the following survey:",
        "",
        f"Title: {title}",
        f"Target Audience: {audience}",
    ]
    if description:
        lines.append(f"Description: {description}")
    lines += [
        "",
        'Return a JSON object of the form {"questions": [{"type": ..., "text": ..., "options": [...] or null}]}.',
        'Valid question types: "short_text", "long_text", "multiple_choice", "rating", "yes_no"',
        "",
        "Requirements:",
        "- Create 5 diverse questions using different question types",
        "- Questions should be clear, specific, and relevant to the survey context",
        "- Multiple choice questions must have 3-5 options",
        "- Include at least one open-ended question (short_text or long_text)",
        "- Tailor language and topics to the target audience",
    ]
    return "\n".join(lines)


def _chat_json(system_prompt, user_prompt, temperature):
    """POST a chat completion and return the parsed JSON content of the first choice."""
    response = requests.post(
        settings.OPENAI_API_URL,
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
        },
        json={
            "model": settings.OPENAI_MODEL,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "response_format": {"type": "json_object"},
        },
        timeout=settings.OPENAI_TIMEOUT,
    )
    if response.status_code != 200:
        raise ProviderError(f"OpenAI API error: {response.status_code} {response.text[:200]}")
    try:
        content = response.json()["choices"][0]["message"]["content"]
        parsed = json.loads(content)
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise ProviderError(f"Malformed OpenAI response: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ProviderError(f"Expected a JSON object from OpenAI, got {type(parsed).__name__}")
    return parsed


def analyze_sentiment(answers):
    """
    Classify a response's answers.

    Returns (analysis, is_mock, error) where analysis is {"sentiment", "summary"}.
    Raises AnalysisError when there is no non-blank answer text.
    """
    values = answers.values() if isinstance(answers, dict) else answers
    text = " | ".join(str(v) for v in values if v is not None and str(v).strip())
    if not text.strip():
        logger.warning("No text content to analyze")
        raise AnalysisError("No text content to analyze")

    if not settings.OPENAI_API_KEY:
        logger.info("OpenAI API key not configured, using mock analysis")
        return mock_analysis(text), True, None

    try:
        logger.debug("Requesting sentiment analysis (%d chars, model %s)", len(text), settings.OPENAI_MODEL)
        parsed = _chat_json(ANALYSIS_SYSTEM_PROMPT, _analysis_prompt(text), temperature=0.3)
    except (requests.RequestException, ProviderError) as exc:
        logger.warning("OpenAI API error, falling back to mock analysis: %s", exc)
        return mock_analysis(text), True, ANALYSIS_FALLBACK_ERROR

    sentiment = str(parsed.get("sentiment") or "neutral").lower()
    if sentiment not in SENTIMENTS:
        logger.warning("Provider returned unknown sentiment %r, using neutral", sentiment)
        sentiment = "neutral"
    analysis = {"sentiment": sentiment, "summary": parsed.get("summary") or "No summary available"}
    logger.info("OpenAI analyzed sentiment: %s", analysis["sentiment"])
    return analysis, False, None


def generate_questions(title, audience, description=None):
    """Returns (questions, is_mock, error); each question is {type, text, options, required}."""
    if not settings.OPENAI_API_KEY:
        logger.info("OpenAI API key not configured, using mock questions for %r", title)
        return mock_questions(title, audience), True, None

    try:
        parsed = _chat_json(QUESTIONS_SYSTEM_PROMPT, _questions_prompt(title, audience, description), temperature=0.7)
    except (requests.RequestException, ProviderError) as exc:
        logger.warning("OpenAI API error, falling back to mock questions: %s", exc)
        return mock_questions(title, audience), True, QUESTIONS_FALLBACK_ERROR

    raw = parsed.get("questions")
    questions = [
        {
            "type": q["type"],
            "text": str(q["text"]),
            "options": [str(o) for o in q["options"]] if isinstance(q.get("options"), list) and q["options"] else None,
            "required": True,
        }
        for q in (raw if isinstance(raw, list) else [])
        if isinstance(q, dict) and q.get("type") in QUESTION_TYPES and q.get("text")
    ]
    if not questions:
        logger.warning("OpenAI returned no usable questions for %r, using mock questions", title)
        return mock_questions(title, audience), True, QUESTIONS_FALLBACK_ERROR
    logger.info("OpenAI generated %d questions for %r", len(questions), title)
    return questions, False, None
