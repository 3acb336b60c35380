from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from speakassist.models.conversation import ConversationTurn, Role
from speakassist.models.preferences import Preferences
from speakassist.models.suggestion import SuggestionRequest, SuggestionResult
from speakassist.services.gateway import RequestGateway, get_gateway

router = APIRouter()


@router.post("")
async def suggest_once(
    body: SuggestionRequest, gateway: RequestGateway = Depends(get_gateway),
) -> SuggestionResult:
    """stateless suggestion for clients that track their own transcript"""
    try:
        preferences = Preferences(response_style=body.response_style, language=body.language)
    except ValidationError:
        raise HTTPException(
            400,
            f"invalid responseStyle: {body.response_style}. use formal, casual, supportive or neutral",
        )

    context = [ConversationTurn(role=Role.USER, content=line) for line in body.recent_history]
    return await gateway.suggest(body.transcript, context, preferences)
