"""Query intent classification."""

import re

import pydantic

from knowledge_agent.agents.models import IntentAnalysis
from knowledge_agent.llm.client import LLMClient
from knowledge_agent.llm.models import CompletionOptions
from knowledge_agent.llm.prompts import INTENT_SYSTEM_PROMPT, IntentPromptTemplate
from knowledge_agent.logging_config import get_logger

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)


def parse_intent(text: str) -> IntentAnalysis | None:
    """Decode a model reply into an IntentAnalysis.

    Markdown code fences around the JSON are ignored. Anything that is not
    JSON matching the schema yields ``None``.
    """
    candidate = text.strip()
    fenced = _CODE_FENCE.match(candidate)
    if fenced:
        candidate = fenced.group(1)

    try:
        return IntentAnalysis.model_validate_json(candidate)
    except pydantic.ValidationError:
        return None


class IntentAnalyzer:
    """Asks the completion model to classify a query."""

    def __init__(self, llm_client: LLMClient) -> None:
        self._llm = llm_client
        self._template = IntentPromptTemplate()
        self._options = CompletionOptions(temperature=0.3, max_tokens=200)

    async def analyze(self, query: str) -> IntentAnalysis:
        """Classify ``query``.

        A reply that cannot be decoded gives ``IntentAnalysis.default()``.

        Raises:
            LLMError: If the completion itself fails.
        """
        result = await self._llm.generate_text(
            self._template.format(query=query),
            system_prompt=INTENT_SYSTEM_PROMPT,
            options=self._options,
        )

        analysis = parse_intent(result.content)
        if analysis is None:
            logger.warning(
                "Could not decode intent reply, using default classification",
                extra={"reply_preview": result.content[:100]},
            )
            return IntentAnalysis.default()
        return analysis
