"""Configuration API endpoints"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ValidationError

from pika_backend.models.diff import DiffSettings
from pika_backend.services.config_manager import ConfigManager
from pika_backend.services.llm_service import LLMService

router = APIRouter()

PROVIDERS = ("openai", "gemini", "vllm")


class ConfigUpdateRequest(BaseModel):
    """Request to update configuration"""

    provider: str | None = None
    openai: dict | None = None
    gemini: dict | None = None
    vllm: dict | None = None
    formatting: dict | None = None
    diff: dict | None = None


class ConfigResponse(BaseModel):
    """Configuration response"""

    provider: str
    openai: dict
    gemini: dict
    vllm: dict
    formatting: dict
    diff: dict


class ValidateResponse(BaseModel):
    """Validation response"""

    valid: bool
    message: str
    provider: str


def mask_key(key: str) -> str:
    if not key:
        return ""
    if len(key) <= 8:
        return "*" * len(key)
    return key[:4] + "*" * (len(key) - 8) + key[-4:]


@router.get("", response_model=ConfigResponse)
async def get_config() -> ConfigResponse:
    """Get current configuration with API keys masked"""
    config = ConfigManager.get_instance().get_config()

    sections = {}
    for provider in PROVIDERS:
        section = dict(config.get(provider, {}))
        section["apiKey"] = mask_key(section.get("apiKey", ""))
        sections[provider] = section

    return ConfigResponse(
        provider=config.get("provider", "openai"),
        formatting=config.get("formatting", {}),
        diff=config.get("diff", {}),
        **sections,
    )


@router.put("")
async def update_config(request: ConfigUpdateRequest) -> dict[str, Any]:
    """Update configuration"""
    config_manager = ConfigManager.get_instance()
    current_config = config_manager.get_config()

    if request.provider:
        if request.provider not in PROVIDERS:
            raise HTTPException(status_code=400, detail=f"Unsupported provider: {request.provider}")
        current_config["provider"] = request.provider

    for section in (*PROVIDERS, "formatting", "diff"):
        update = getattr(request, section)
        if update:
            current_config[section] = {**current_config.get(section, {}), **update}

    if request.diff:
        try:
            settings = DiffSettings.model_validate(current_config["diff"])
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid diff settings: {e}")
        current_config["diff"] = settings.model_dump(by_alias=True)

    config_manager.save_config(current_config)

    return {"status": "success", "message": "Configuration updated"}


@router.post("/validate", response_model=ValidateResponse)
async def validate_config() -> ValidateResponse:
    """Validate current configuration by testing LLM connection"""
    config = ConfigManager.get_instance().get_config()
    provider = config.get("provider", "openai")

    try:
        llm_service = LLMService(config)
        response = await llm_service.generate_response("Say 'OK' if you can hear me.")
    except Exception as e:
        return ValidateResponse(
            valid=False,
            message=f"Connection failed: {str(e)}",
            provider=provider,
        )

    if response:
        return ValidateResponse(
            valid=True,
            message=f"Successfully connected to {provider}",
            provider=provider,
        )
    return ValidateResponse(
        valid=False,
        message="Received empty response from LLM",
        provider=provider,
    )
