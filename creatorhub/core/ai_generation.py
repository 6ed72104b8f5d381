"""
Prompt building and chat-completion calls for the AI tools.

``ContentGenerator`` wraps an ``AsyncOpenAI`` client built by the caller,
who also owns its HTTP transport. Quota checks live in ``ai_usage``; this
module only talks to the model.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import openai
from openai import AsyncOpenAI

from creatorhub.core.exceptions import GenerationFailed

logger = logging.getLogger(__name__)

Message = dict[str, str]

WEBSITE_SYSTEM_PROMPT = (
    "You are a professional web designer and copywriter. "
    "You write compelling, SEO-optimized website content."
)
BRAND_SYSTEM_PROMPT = (
    "You are a professional brand strategist and designer. "
    "You create cohesive, market-appropriate brand identities."
)
CONTENT_SYSTEM_PROMPT = (
    "You are a professional content writer and marketer. "
    "You write high-quality, engaging content that drives results."
)

_CONTENT_TEMPLATES = {
    "blog-post": (
        'Write a {length} blog post about "{topic}" for {audience}. Tone: {tone}. '
        "Work these keywords in naturally: {keywords}. Include a title, an "
        "introduction, sections with headers and a conclusion. Optimise it for search."
    ),
    "social-media": (
        'Write {length} social media posts about "{topic}" for {audience}. '
        "Tone: {tone}. Add relevant hashtags and a call to action to each post."
    ),
    "product-description": (
        'Write a product description for "{topic}" aimed at {audience}. Tone: {tone}. '
        "Cover the key features and benefits and end with a call to action. Length: {length}."
    ),
    "email-campaign": (
        'Write an email campaign about "{topic}" for {audience}. Tone: {tone}. '
        "Include a subject line, preheader, body copy and a call to action."
    ),
}
_GENERIC_CONTENT = (
    'Write {content_type} content about "{topic}" for {audience}. '
    "Tone: {tone}. Length: {length}."
)


def website_prompt(
    *,
    business_type: str,
    business_name: str,
    description: str,
    industry: str,
    target_audience: str,
    style: str,
    pages: Sequence[str],
) -> str:
    return (
        f'Create website content for a {business_type} business called "{business_name}".\n\n'
        f"Business description: {description}\n"
        f"Industry: {industry}\n"
        f"Target audience: {target_audience}\n"
        f"Design style: {style}\n"
        f"Pages: {', '.join(pages)}\n\n"
        "Provide a homepage hero with headline and call to action, an about page, "
        "service or product descriptions, a contact section, meta descriptions, a "
        "colour scheme and font suggestions. Answer as JSON with one key per page "
        "plus a design key."
    )


def brand_prompt(
    *,
    business_name: str,
    industry: str,
    target_audience: str,
    brand_personality: str,
    values: Sequence[str],
) -> str:
    return (
        f'Create a brand identity kit for "{business_name}" in the {industry} industry.\n\n'
        f"Target audience: {target_audience}\n"
        f"Brand personality: {brand_personality}\n"
        f"Core values: {', '.join(values)}\n\n"
        "Provide a positioning statement, a colour palette with hex codes, heading and "
        "body typefaces, voice and tone guidelines, three logo concepts, a guidelines "
        "summary and social media bio suggestions. Answer as JSON."
    )


def content_prompt(
    content_type: str,
    *,
    topic: str,
    tone: str,
    length: str,
    target_audience: str,
    keywords: Sequence[str],
) -> str:
    template = _CONTENT_TEMPLATES.get(content_type, _GENERIC_CONTENT)
    return template.format(
        content_type=content_type,
        topic=topic,
        tone=tone,
        length=length,
        audience=target_audience,
        keywords=", ".join(keywords) or "none",
    )


def content_max_tokens(content_type: str) -> int:
    return 1500 if content_type == "blog-post" else 800


def chat_system_prompt(user: Any) -> str:
    return (
        "You are the CreatorHub assistant. You help creators with branding, content, "
        "websites, marketing and growing their business.\n\n"
        f"User: {user.full_name}\n"
        f"Plan: {user.subscription_plan}\n"
        f"Industry: {user.industry or 'not specified'}\n"
        f"This month: {user.websites_generated or 0} websites and "
        f"{user.content_generated or 0} content pieces generated\n\n"
        "Give concise, actionable advice. If a premium feature would help, mention "
        "the upgrade briefly."
    )


class ContentGenerator:
    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = "gpt-4",
        chat_model: str = "gpt-3.5-turbo",
    ) -> None:
        self._client = client
        self._model = model
        self._chat_model = chat_model

    async def complete(
        self,
        messages: Iterable[Message],
        *,
        max_tokens: int,
        temperature: float = 0.7,
        model: str | None = None,
    ) -> str:
        """Run one chat completion and return the reply text.

        SDK errors (connection, timeout, non-2xx) and empty replies all surface
        as ``GenerationFailed``.
        """
        model = model or self._model
        try:
            completion = await self._client.chat.completions.create(
                model=model,
                messages=list(messages),  # type: ignore[arg-type]
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.OpenAIError as e:
            raise GenerationFailed(f"{model}: {e}") from e

        if not completion.choices or not completion.choices[0].message.content:
            raise GenerationFailed(f"{model}: empty completion")
        if completion.usage is not None:
            logger.debug("%s used %d tokens", model, completion.usage.total_tokens)
        return completion.choices[0].message.content

    async def website(self, **fields: Any) -> str:
        return await self.complete(
            [
                {"role": "system", "content": WEBSITE_SYSTEM_PROMPT},
                {"role": "user", "content": website_prompt(**fields)},
            ],
            max_tokens=2000,
        )

    async def brand_kit(self, **fields: Any) -> str:
        return await self.complete(
            [
                {"role": "system", "content": BRAND_SYSTEM_PROMPT},
                {"role": "user", "content": brand_prompt(**fields)},
            ],
            max_tokens=1500,
        )

    async def content(self, content_type: str, **fields: Any) -> str:
        return await self.complete(
            [
                {"role": "system", "content": CONTENT_SYSTEM_PROMPT},
                {"role": "user", "content": content_prompt(content_type, **fields)},
            ],
            max_tokens=content_max_tokens(content_type),
        )

    async def chat(self, user: Any, message: str, history: Iterable[Message] = ()) -> str:
        return await self.complete(
            [
                {"role": "system", "content": chat_system_prompt(user)},
                *history,
                {"role": "user", "content": message},
            ],
            max_tokens=500,
            temperature=0.8,
            model=self._chat_model,
        )
