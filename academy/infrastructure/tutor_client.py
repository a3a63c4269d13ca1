"""Streaming chat client for the AI tutor (OpenAI-compatible OpenRouter API)."""
from typing import Iterator, List, Dict, Optional

import structlog
from openai import OpenAI

from ..application.dto import TutorContext
from ..config import settings

logger = structlog.get_logger(__name__)

BASE_SYSTEM_PROMPT = """You are an expert tutor teaching Amazon Bedrock AgentCore. Help developers \
understand the technology through clear, patient instruction.

- Present one concept at a time and build complexity gradually.
- After explaining a concept, ask one or two questions that test understanding.
- Use analogies, code snippets and real-world examples; explain what code does.
- Only use information from the module context below. If unsure, say so.
- Connect every concept back to building real agents.
"""


def build_system_prompt(context: TutorContext) -> str:
    topics = ", ".join(context.topics_explained) or "None yet"
    gaps = ", ".join(context.identified_gaps) or "None identified"
    return f"""{context.system_prompt}

## Current Module Context
{context.module_context}

## Current Lesson Content
{context.lesson_content}

## Student's Learning State
- Topics already explained: {topics}
- Identified knowledge gaps: {gaps}

Remember:
- Build on what the student already knows
- Address any identified knowledge gaps when relevant
- Check understanding before moving to new concepts
"""


class TutorClient:
    """Service for streaming tutor replies. The API key is always passed in explicitly."""

    def __init__(self, api_key: str, model: Optional[str] = None, base_url: Optional[str] = None,
                 client: Optional[OpenAI] = None):
        if not api_key:
            raise ValueError("api_key is required")
        self.model = model or settings.TUTOR_MODEL
        self.client = client or OpenAI(
            api_key=api_key,
            base_url=base_url or settings.OPENROUTER_BASE_URL,
            default_headers={"HTTP-Referer": settings.APP_URL, "X-Title": "AgentCore Academy"},
        )

    def stream_reply(self, messages: List[Dict[str, str]], context: TutorContext) -> Iterator[str]:
        """Yield text deltas of the tutor's reply as they arrive."""
        payload = [{"role": "system", "content": build_system_prompt(context)}]
        payload += [{"role": m["role"], "content": m["content"]} for m in messages]

        stream = self.client.chat.completions.create(
            model=self.model,
            messages=payload,
            max_tokens=settings.TUTOR_MAX_TOKENS,
            temperature=settings.TUTOR_TEMPERATURE,
            stream=True,
        )
        for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content
