"""
OptiFuel — NutriAthlete AI Assistant (ADK Conversational Agent)
===============================================================
Free-form sports nutrition Q&A for the dashboard's chat tab.

- One shared InMemorySessionService, one ADK session per user
- Rate-limited model requests are retried inside the turn; failed turns are
  rolled back out of the session
- Failures come back as a localized reply, never as an exception
"""

from typing import Any, AsyncGenerator, Dict, List, Optional

from google.adk.agents import LlmAgent
from google.adk.models.base_llm import BaseLlm
from google.adk.models.google_llm import Gemini
from google.adk.models.llm_request import LlmRequest
from google.adk.models.llm_response import LlmResponse
from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from tools.api_gateway import GATEWAY_CONFIG, error_message_key, get_client, with_retry
from tools.localization import DEFAULT_LANGUAGE, translate

# =============================================================================
# CONFIGURATION
# =============================================================================
ASSISTANT_CONFIG = {
    "app_name": "optifuel",
    "agent_name": "NutriAthleteAI",
}

ASSISTANT_INSTRUCTION = """You are NutriAthlete AI, a friendly and knowledgeable sports nutrition assistant for track and field athletes.

- Give concise, practical answers (2-4 sentences unless the athlete asks for detail)
- Base advice on established sports nutrition guidance
- Tailor suggestions to the athlete's discipline and diet when they mention them
- For questions about supplements, medication or medical conditions, always recommend consulting a doctor or registered nutritionist
- If a question is outside nutrition, hydration or recovery, gently steer back
"""


# =============================================================================
# SESSION SERVICE (shared, in-memory)
# =============================================================================
class AssistantSessions:
    """Owns the session service and hands out one session per user."""

    def __init__(self):
        self.session_service = InMemorySessionService()

    async def get_or_create_session(self, user_id: str):
        app_name = ASSISTANT_CONFIG["app_name"]
        session_id = f"session_{user_id}"

        session = await self.session_service.get_session(
            app_name=app_name,
            user_id=user_id,
            session_id=session_id,
        )
        if session:
            return session

        session = await self.session_service.create_session(
            app_name=app_name,
            user_id=user_id,
            session_id=session_id,
            state={},
        )
        print(f"✨ Created assistant session: {session_id}")
        return session

    async def reset(self, user_id: str) -> None:
        session_id = f"session_{user_id}"
        session = await self.session_service.get_session(
            app_name=ASSISTANT_CONFIG["app_name"],
            user_id=user_id,
            session_id=session_id,
        )
        if session:
            await self.session_service.delete_session(
                app_name=ASSISTANT_CONFIG["app_name"],
                user_id=user_id,
                session_id=session_id,
            )

    async def rollback(self, user_id: str, keep_events: int) -> None:
        """Drop every event past the first `keep_events` from the user's session."""
        app_name = ASSISTANT_CONFIG["app_name"]
        session_id = f"session_{user_id}"
        session = await self.session_service.get_session(
            app_name=app_name,
            user_id=user_id,
            session_id=session_id,
        )
        if session is None or len(session.events) <= keep_events:
            return

        kept = session.events[:keep_events]
        await self.session_service.delete_session(
            app_name=app_name,
            user_id=user_id,
            session_id=session_id,
        )
        fresh = await self.session_service.create_session(
            app_name=app_name,
            user_id=user_id,
            session_id=session_id,
            state={},
        )
        for event in kept:
            await self.session_service.append_event(fresh, event)
        print(f"↩️ Rolled back {len(session.events) - keep_events} event(s) in {session_id}")


_sessions: Optional[AssistantSessions] = None


def get_sessions() -> AssistantSessions:
    global _sessions
    if _sessions is None:
        _sessions = AssistantSessions()
    return _sessions


# =============================================================================
# AGENT
# =============================================================================
async def _collect_responses(llm: BaseLlm, llm_request: LlmRequest, stream: bool) -> List[LlmResponse]:
    return [response async for response in llm.generate_content_async(llm_request, stream=stream)]


class RetryingLlm(BaseLlm):
    """
    Wraps a model so rate-limited requests are retried inside the agent turn.

    The runner stores the user's message once; only the model request is
    repeated. Responses are buffered, so a retry never replays partial output.
    """

    inner: BaseLlm

    @classmethod
    def wrap(cls, llm: BaseLlm) -> "RetryingLlm":
        return cls(model=llm.model, inner=llm)

    async def generate_content_async(
        self, llm_request: LlmRequest, stream: bool = False
    ) -> AsyncGenerator[LlmResponse, None]:
        responses = await with_retry(
            lambda: _collect_responses(self.inner, llm_request, stream)
        )
        for response in responses:
            yield response


def build_chat_llm() -> BaseLlm:
    return Gemini(model=GATEWAY_CONFIG["chat_model"])


def create_assistant_agent() -> LlmAgent:
    """Build the NutriAthlete chat agent."""
    return LlmAgent(
        name=ASSISTANT_CONFIG["agent_name"],
        model=RetryingLlm.wrap(build_chat_llm()),
        description="Sports nutrition assistant for track and field athletes.",
        instruction=ASSISTANT_INSTRUCTION,
    )


def extract_text_from_event(event) -> Optional[str]:
    """
    Text carried by an ADK runner event.

    Function-call and function-response parts are skipped; events with no
    text at all yield None.
    """
    content = getattr(event, "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not parts:
        return None

    texts = []
    for part in parts:
        if part is None:
            continue
        if getattr(part, "function_call", None) or getattr(part, "function_response", None):
            continue
        text = getattr(part, "text", None)
        if text and text.strip():
            texts.append(text.strip())

    return " ".join(texts) if texts else None


async def _run_turn(message: str, user_id: str) -> str:
    """
    One agent turn; collects every text event into a single reply.

    A turn that fails is removed from the session again, so history only
    holds exchanges that got an answer.
    """
    # Surfaces a missing API key as a classified error before ADK does
    get_client()

    sessions = get_sessions()
    session = await sessions.get_or_create_session(user_id)
    committed = len(session.events)

    runner = Runner(
        agent=create_assistant_agent(),
        app_name=ASSISTANT_CONFIG["app_name"],
        session_service=sessions.session_service,
    )
    content = types.Content(role="user", parts=[types.Part.from_text(text=message)])

    replies = []
    try:
        async for event in runner.run_async(
            user_id=user_id,
            session_id=session.id,
            new_message=content,
        ):
            text = extract_text_from_event(event)
            if text and text not in replies:
                replies.append(text)
    except Exception:
        await sessions.rollback(user_id, committed)
        raise

    return " ".join(replies).strip()


# =============================================================================
# MAIN CHAT FUNCTION
# =============================================================================
async def ask_assistant(
    message: str,
    user_id: str = "default",
    language: str = DEFAULT_LANGUAGE,
) -> Dict[str, Any]:
    """
    Send one chat message to the assistant.

    Returns:
        {"status": "success", "reply": str} or
        {"status": "error", "reply": <localized error>, "error_key": str}
    """
    try:
        reply = await _run_turn(message, user_id)
    except Exception as e:
        key = error_message_key(e, generic_key="genericAssistantError")
        print(f"❌ Assistant error ({key}): {e}")
        return {"status": "error", "reply": translate(key, language), "error_key": key}

    if not reply:
        return {
            "status": "error",
            "reply": translate("genericAssistantError", language),
            "error_key": "genericAssistantError",
        }
    return {"status": "success", "reply": reply}


__all__ = [
    "ASSISTANT_CONFIG",
    "ASSISTANT_INSTRUCTION",
    "AssistantSessions",
    "get_sessions",
    "RetryingLlm",
    "build_chat_llm",
    "create_assistant_agent",
    "extract_text_from_event",
    "ask_assistant",
]
