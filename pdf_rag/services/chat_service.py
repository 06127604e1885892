"""
Chat service for generating answers from retrieved passages using an LLM.
"""

import asyncio
from typing import List, Sequence, Union

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.runnables import Runnable
from langchain_google_genai import ChatGoogleGenerativeAI, HarmBlockThreshold, HarmCategory

from ..config import Settings, settings
from ..errors import ProviderError, ProviderTimeout
from ..models import GeneratedAnswer, Passage
from ..utils import (
    measure_time,
    log_processing_info,
    handle_processing_error
)
import logging

logger = logging.getLogger(__name__)

NOT_FOUND_ANSWER = "I couldn't find that information in the document."

ANSWER_PROMPT = ChatPromptTemplate.from_template(
    """Answer the user's question based only on the following context:
{context}

Question: {input}

Provide a clear, concise answer in the same language as the question.
If the answer isn't in the context, say "{not_found}"
Do not invent information that is not present in the context."""
)


def create_google_chat_model(app_settings: Settings = None) -> ChatGoogleGenerativeAI:
    """Initialize the Gemini chat model."""
    app_settings = app_settings or settings
    try:
        llm = ChatGoogleGenerativeAI(
            model=app_settings.google_chat_model,
            google_api_key=app_settings.google_api_key,
            temperature=app_settings.google_temperature,
            max_output_tokens=app_settings.google_max_output_tokens,
            safety_settings={
                HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
                HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
            }
        )

        log_processing_info("LLM initialized", {
            "model": app_settings.google_chat_model,
            "temperature": app_settings.google_temperature
        })

        return llm

    except Exception as e:
        error_info = handle_processing_error("llm_init", e)
        raise ProviderError("Failed to initialize LLM", details=error_info["error_message"]) from e


class ChatService:
    """Service for generating chat responses using LLM."""

    def __init__(self, llm: Union[BaseChatModel, Runnable], timeout_seconds: float = None):
        """Initialize the chat service around an injected chat model."""
        self.llm = llm
        self.timeout_seconds = timeout_seconds or settings.provider_timeout_seconds
        self.chain = ANSWER_PROMPT | llm | StrOutputParser()

    @staticmethod
    def format_context(passages: Sequence[Passage]) -> str:
        """Render passages as a context block, each tagged with its source."""
        blocks = []
        for passage in passages:
            label = passage.source_label
            if passage.page_label:
                label = f"{label}, {passage.page_label}"
            blocks.append(f"[{label}]\n{passage.text}")
        return "\n\n".join(blocks)

    @measure_time
    async def generate_answer(self, question: str, passages: List[Passage]) -> GeneratedAnswer:
        """
        Generate an answer to the user's question from the supplied passages.

        Args:
            question: User's question
            passages: Retrieved passages, most similar first

        Returns:
            GeneratedAnswer; every supplied passage counts as used
        """
        context = self.format_context(passages)

        try:
            answer = await asyncio.wait_for(
                self.chain.ainvoke({
                    "context": context,
                    "input": question,
                    "not_found": NOT_FOUND_ANSWER
                }),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            handle_processing_error("response_generation", e, {"passages": len(passages)})
            raise ProviderTimeout(
                "Chat provider timed out",
                details=f"No response within {self.timeout_seconds} seconds"
            ) from e
        except Exception as e:
            error_info = handle_processing_error(
                "response_generation",
                e,
                {
                    "question_length": len(question),
                    "passages": len(passages)
                }
            )
            raise ProviderError("Error processing chat request", details=error_info["error_message"]) from e

        log_processing_info("Response generated", {
            "question_length": len(question),
            "context_length": len(context),
            "answer_length": len(answer),
            "passages": len(passages)
        })

        return GeneratedAnswer(
            text=answer.strip(),
            used_passage_ids=[p.id for p in passages]
        )
