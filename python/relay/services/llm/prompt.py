"""Provider-agnostic prompt rendering for LLM requests.

Prompt structure:
- System turn always first
- The most recent history turns (user/assistant only), oldest dropped first
- Current user message last
"""

from collections.abc import Sequence

from relay.services.llm.types import Turn

SYSTEM_PROMPT = (
    "You are a helpful AI assistant. "
    "Provide clear, concise, and helpful responses to user questions."
)

DEFAULT_MAX_HISTORY = 10


def render_prompt(
    user_content: str,
    history: Sequence[Turn],
    max_history: int = DEFAULT_MAX_HISTORY,
    system_prompt: str = SYSTEM_PROMPT,
) -> list[Turn]:
    """Build the turn list for an LLM request.

    Args:
        user_content: Current user message text.
        history: Prior turns, oldest first.
        max_history: Number of most recent history turns to keep.
        system_prompt: System instructions.

    Returns:
        List of Turn objects ready for adapter consumption.

    Example output:
        [
            Turn(role="system", content="You are a helpful AI assistant..."),
            Turn(role="user", content="What is X?"),
            Turn(role="assistant", content="X is..."),
            Turn(role="user", content="<current user message>"),
        ]
    """
    turns: list[Turn] = [Turn(role="system", content=system_prompt)]

    conversational = [t for t in history if t.role in ("user", "assistant")]
    if max_history > 0:
        turns.extend(conversational[-max_history:])

    turns.append(Turn(role="user", content=user_content))
    return turns
