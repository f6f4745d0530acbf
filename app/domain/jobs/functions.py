"""
Background functions triggered through the event bus.
"""
from typing import Any, Dict, List

from app.domain.jobs.events import JobContext, create_function
from app.integrations.ai import generate_text

EXECUTE_AI_EVENT = "execute/ai"
DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."
DEFAULT_PROMPT = "What is 2 + 2?"


@create_function(id="execute", event=EXECUTE_AI_EVENT)
def execute(ctx: JobContext) -> List[Dict[str, Any]]:
    """Generate text for the event's prompt and return the recorded steps."""
    ctx.step(
        "Generate text",
        generate_text,
        ctx.data.get("prompt") or DEFAULT_PROMPT,
        system=ctx.data.get("system") or DEFAULT_SYSTEM_PROMPT,
        model=ctx.data.get("model"),
    )
    return ctx.steps
