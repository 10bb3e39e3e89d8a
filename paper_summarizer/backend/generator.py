"""
Integration helpers for the hosted text-generation service.

This module defines a thin wrapper around the OpenAI client that
shapes the three requests the application makes about a paper:
summarisation, bias analysis and question answering.  Each request
sends the paper's full text (and, for Q&A, the user's question) and
returns the generated text as a single string.

Set the ``OPENAI_API_KEY`` environment variable (or ``OPENAI_API_KEYS``
containing a comma-separated list of keys) before using these
helpers.  ``SUMMARIZER_MODEL`` selects the model.

Requests go through the Responses API.  When ``OPENAI_BASE_URL`` points
the client at another OpenAI-compatible endpoint (for example the
Gemini API's compatibility layer), they go through Chat Completions
instead, since that is the interface such endpoints implement.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from .errors import ConfigurationError, GeneratorError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gpt-4o-mini'

SUMMARY_PROMPT = """You are an expert research assistant. Summarize the following research paper.

Cover, in plain language:
- The research question and why it matters
- The methodology and data used
- The key findings
- The main conclusions and their implications

Keep the summary concise and well structured.

Paper:
{text}"""

BIAS_PROMPT = """You are a careful peer reviewer. Analyze the following research paper for potential biases.

Consider, where relevant:
- Selection and sampling bias
- Confirmation bias in how results are interpreted
- Funding sources or conflicts of interest
- Methodological limitations that could skew the results
- Gaps between the evidence presented and the conclusions drawn

For each bias you find, explain where it appears in the paper and how it might affect the conclusions.
If you find no significant bias, say so and explain why.

Paper:
{text}"""

QUESTION_PROMPT = """You are a research assistant answering questions about a research paper.
Answer the question using only the content of the paper below.
If the paper does not contain the answer, say so plainly.

Paper:
{text}

Question: {question}"""


def _resolve_api_key() -> str:
    """Resolve a single OpenAI API key from environment variables."""
    single = os.getenv('OPENAI_API_KEY')
    if single:
        return single
    multiple = os.getenv('OPENAI_API_KEYS')
    if multiple:
        for key in (k.strip() for k in multiple.split(',') if k.strip()):
            return key
    raise ConfigurationError(
        'Missing OpenAI API key. Set OPENAI_API_KEY or OPENAI_API_KEYS in your environment.'
    )


def extract_output_text(response: Any) -> str:
    """Pull the generated text out of a Responses API result.

    Current client versions expose the aggregated text as
    ``output_text``.  Otherwise the text of the last output item is
    used.  An empty result raises :class:`GeneratorError`.
    """
    text = getattr(response, 'output_text', None)
    if not text and getattr(response, 'output', None):
        final_output = response.output[-1]
        content = getattr(final_output, 'content', None)
        if content:
            text = getattr(content[0], 'text', None)
    if not isinstance(text, str) or not text.strip():
        raise GeneratorError('The model returned an empty response')
    return text.strip()


def extract_chat_text(response: Any) -> str:
    """Pull the generated text out of a Chat Completions result."""
    choices = getattr(response, 'choices', None) or []
    text = choices[0].message.content if choices else None
    if not isinstance(text, str) or not text.strip():
        raise GeneratorError('The model returned an empty response')
    return text.strip()


class OpenAIGenerator:
    """Summarise, analyse and answer questions about paper text.

    The underlying client is created on first use, so constructing a
    generator never fails; a missing API key surfaces as a
    :class:`ConfigurationError` from the first request instead.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model or os.getenv('SUMMARIZER_MODEL', DEFAULT_MODEL)
        self.base_url = base_url or os.getenv('OPENAI_BASE_URL') or None
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            api_key = self.api_key or _resolve_api_key()
            self._client = OpenAI(api_key=api_key, base_url=self.base_url)
        return self._client

    def _generate(self, task: str, prompt: str) -> str:
        logger.info(f"Requesting {task} from model {self.model}")
        try:
            if self.base_url:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=[{'role': 'user', 'content': prompt}],
                )
            else:
                response = self.client.responses.create(model=self.model, input=prompt)
        except OpenAIError as e:
            logger.error(f"Generator request for {task} failed: {e}")
            raise GeneratorError(f'Failed to generate {task}') from e
        if self.base_url:
            return extract_chat_text(response)
        return extract_output_text(response)

    def summarize(self, text: str) -> str:
        """Return a summary of the paper text."""
        return self._generate('summary', SUMMARY_PROMPT.format(text=text))

    def detect_bias(self, text: str) -> str:
        """Return an analysis of potential biases in the paper text."""
        return self._generate('bias analysis', BIAS_PROMPT.format(text=text))

    def answer_question(self, text: str, question: str) -> str:
        """Answer ``question`` using only the paper text as context."""
        return self._generate('answer', QUESTION_PROMPT.format(text=text, question=question))
