from openai import AsyncOpenAI, OpenAIError

from speakassist.config import settings
from speakassist.errors import RequestFailure
from speakassist.models.preferences import STYLE_DESCRIPTIONS, ResponseStyle
from speakassist.models.suggestion import WAIT_SUGGESTION, SuggestionRequest

_client: AsyncOpenAI | None = None

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "pt": "Portuguese",
    "hi": "Hindi",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "ar": "Arabic",
}


def _get_client() -> AsyncOpenAI:
    global _client
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY is not set")
    if _client is None:
        _client = AsyncOpenAI(api_key=settings.openai_api_key)
    return _client


async def chat(system: str, user: str, *, json_mode: bool = False) -> str:
    client = _get_client()
    extra = {"response_format": {"type": "json_object"}} if json_mode else {}
    resp = await client.chat.completions.create(
        model=settings.llm_model,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        **extra,
    )
    content = resp.choices[0].message.content
    if content is None:
        raise RuntimeError("LLM returned empty response")
    return content


def build_system_prompt(request: SuggestionRequest, mode: str) -> str:
    try:
        tone = STYLE_DESCRIPTIONS[ResponseStyle(request.response_style)]
    except ValueError:
        tone = STYLE_DESCRIPTIONS[ResponseStyle.NEUTRAL]
    language = LANGUAGE_NAMES.get(request.language, request.language)

    rules = (
        "you are a silent real-time speaking assistant used during live online meetings.\n"
        "you receive the most recent spoken sentence from the conversation and suggest "
        "what the user could say next.\n"
        "rules:\n"
        f"- write in {language}\n"
        f"- use a {tone}\n"
        "- maximum 1-2 lines per suggestion\n"
        "- no explanations, fillers, emojis or mentions of AI\n"
    )
    if mode == "simple":
        return (
            rules
            + "- output ONLY the one sentence to speak\n"
            + f'- if the user should not speak yet, output exactly: "{WAIT_SUGGESTION}"'
        )
    return (
        rules
        + "respond with a JSON object with these keys:\n"
        + '  "topic": short topic label,\n'
        + '  "intent": what the speakers are trying to do,\n'
        + '  "group_mood": one or two words,\n'
        + '  "speaking_opportunity": "good", "neutral" or "listen",\n'
        + '  "assistive_cue": short label for the recommended action,\n'
        + '  "suggestions": list of 1-3 sentences the user could say, best first.\n'
        + f'if the user should not speak yet, use "listen" and ["{WAIT_SUGGESTION}"].'
    )


def build_user_prompt(request: SuggestionRequest) -> str:
    if not request.recent_history:
        return f"Latest speech:\n{request.transcript}"
    earlier = "\n".join(f"- {line}" for line in request.recent_history)
    return f"Earlier in the conversation:\n{earlier}\n\nLatest speech:\n{request.transcript}"


class OpenAIBackend:
    """completion backend calling the OpenAI chat API directly"""

    def __init__(self, mode: str | None = None):
        self.mode = mode or settings.completion_mode

    async def complete(self, request: SuggestionRequest) -> str:
        try:
            return await chat(
                build_system_prompt(request, self.mode),
                build_user_prompt(request),
                json_mode=self.mode == "structured",
            )
        except (OpenAIError, RuntimeError) as exc:
            raise RequestFailure(f"openai completion failed: {exc}") from exc
