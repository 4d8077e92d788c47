"""Prompt templates for grounded answers, reasoning chains and intent analysis."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class PromptTemplate(ABC):
    """Abstract base class for prompt templates."""

    @abstractmethod
    def format(self, **kwargs: Any) -> str:
        """Format the template with provided variables.

        Args:
            **kwargs: Template variables.

        Returns:
            Formatted prompt string.
        """
        ...


class GroundedQueryTemplate(PromptTemplate):
    """Rewrites a user query so it carries retrieved passages as context.

    Passages are labelled ``[document N]`` starting at 1, in retrieval order.
    """

    DEFAULT_TEMPLATE = """Answer the question using the following knowledge:

{context}

User question: {question}

Answer based on the knowledge above. If it does not contain the relevant information, say so explicitly."""

    def __init__(self, template: str | None = None) -> None:
        """Initialize the template.

        Args:
            template: Custom template with ``context`` and ``question`` fields.
        """
        self.template = template or self.DEFAULT_TEMPLATE

    def format(self, **kwargs: Any) -> str:
        """Format the template.

        Args:
            **kwargs: Must include 'context' and 'question'.

        Returns:
            Formatted user prompt.
        """
        return self.template.format(**kwargs)

    def format_context(self, passages: Sequence[str], separator: str = "\n\n") -> str:
        """Label and join retrieved passages."""
        return separator.join(
            f"[document {index}] {text}" for index, text in enumerate(passages, start=1)
        )

    def build(self, question: str, passages: Sequence[str]) -> str:
        """Build the rewritten query from a question and its passages."""
        return self.format(context=self.format_context(passages), question=question)


class ReasoningStepTemplate(PromptTemplate):
    """Prompt for one step of a sequential reasoning chain."""

    DEFAULT_TEMPLATE = (
        "Task: {context}\n\n"
        "Current step ({index}/{total}): {description}\n\n"
        "Please complete this step and provide the result."
    )

    def __init__(self, template: str | None = None) -> None:
        self.template = template or self.DEFAULT_TEMPLATE

    def format(self, **kwargs: Any) -> str:
        """Format with 'context', 'index', 'total' and 'description'."""
        return self.template.format(**kwargs)


class ReasoningSummaryTemplate(PromptTemplate):
    """Prompt asking for a final answer over all step results."""

    DEFAULT_TEMPLATE = (
        "Produce the final answer from the following multi-step reasoning results:\n\n"
        "{results}\n\n"
        "Please provide a comprehensive summary."
    )

    def __init__(self, template: str | None = None) -> None:
        self.template = template or self.DEFAULT_TEMPLATE

    def format(self, **kwargs: Any) -> str:
        """Format with a pre-rendered 'results' block."""
        return self.template.format(**kwargs)

    def build(self, steps: Sequence[tuple[int, str, str]]) -> str:
        """Render ``(step, description, result)`` triples into the prompt."""
        results = "\n\n".join(
            f"Step {step}: {description}\nResult: {result}"
            for step, description, result in steps
        )
        return self.format(results=results)


INTENT_SYSTEM_PROMPT = (
    "You are an intent analysis expert. Return the analysis result as JSON."
)


class IntentPromptTemplate(PromptTemplate):
    """Classification request for a user query."""

    DEFAULT_TEMPLATE = """Analyze the intent of the following user query and return JSON:
{{
  "intent": "question|command|request|conversation",
  "domain": "technical|general|creative|analytical",
  "complexity": "simple|medium|complex",
  "requiredKnowledge": true|false
}}

User query: {query}"""

    def __init__(self, template: str | None = None) -> None:
        self.template = template or self.DEFAULT_TEMPLATE

    def format(self, **kwargs: Any) -> str:
        """Format with 'query'."""
        return self.template.format(**kwargs)
