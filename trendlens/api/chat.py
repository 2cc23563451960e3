"""Assistant router -- forwards a message plus article context to the text-generation provider."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from trendlens.api.dependencies import Assistant, chat_rate_limit
from trendlens.api.schemas import ChatRequest, ChatResponse
from trendlens.tools.llm_tool import (
    ConfigurationError,
    ProviderAuthError,
    ProviderError,
    ProviderModelNotFoundError,
    ProviderQuotaError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_PROVIDER_ERRORS = [
    (ProviderAuthError, 401, "Invalid OpenAI API key. Please check your API key configuration."),
    (ProviderQuotaError, 429, "OpenAI API rate limit exceeded. Please try again later."),
    (ProviderModelNotFoundError, 404, "OpenAI model not found. Please check your model configuration."),
]


@router.post("/chat", response_model=ChatResponse, dependencies=[Depends(chat_rate_limit)])
async def chat(body: ChatRequest, assistant: Assistant):
    message = body.message
    if not isinstance(message, str) or not message.strip():
        raise HTTPException(status_code=400, detail="Invalid message")

    try:
        reply = await assistant.reply(
            message,
            article=body.article.model_dump() if body.article else None,
            recent_articles=[a.model_dump() for a in body.all_articles],
            conversation=[t.model_dump() for t in body.conversation],
        )
    except ConfigurationError as e:
        logger.error(f"Chat configuration error: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except ProviderError as e:
        for error_cls, status, detail in _PROVIDER_ERRORS:
            if isinstance(e, error_cls):
                logger.warning(f"Chat provider error ({status}): {e}")
                raise HTTPException(status_code=status, detail=detail)
        logger.error(f"Chat API error: {e}")
        raise HTTPException(status_code=500, detail=f"Chat service error: {e}")
    except Exception as e:
        logger.exception(f"Chat API error: {e}")
        raise HTTPException(status_code=500, detail=f"Chat service error: {e or 'Unknown error'}")

    return ChatResponse(response=reply)
