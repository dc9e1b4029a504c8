"""Settings service API endpoints for editing prompt templates and tone texts."""

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from services.auth import User, get_current_user, require_admin
from services.container import ServiceContainer, get_container
from shared.config import config
from shared.logging_utils import setup_logging
from shared.models import SettingUpdateRequest, SettingView
from shared.response_models import APIResponse

logger = setup_logging("settings-app")

app = FastAPI(
    title="Settings Service",
    description="Prompt templates, regional tone guidelines and other key/value settings",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get("allowed_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint for the settings service."""
    return APIResponse(message="Settings Service is healthy")


@app.get("/", response_model=list[SettingView])
async def list_settings(
    category: str | None = None,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> list[SettingView]:
    """List all settings, optionally restricted to one category."""
    if category:
        return await container.settings.get_by_category(category)
    return await container.settings.get_all()


@app.get("/{key}", response_model=SettingView)
async def get_setting(
    key: str,
    user: User = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
) -> SettingView:
    for setting in await container.settings.get_all():
        if setting.key == key:
            return setting
    raise HTTPException(status_code=404, detail=f"Setting {key} not found")


@app.put("/{key}", response_model=APIResponse)
async def update_setting(
    key: str,
    request: SettingUpdateRequest,
    admin: User = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> APIResponse:
    """Write a setting and invalidate the settings cache."""
    if not await container.settings.update(key, request.value):
        raise HTTPException(status_code=500, detail=f"Failed to update setting {key}")
    logger.info(f"Setting {key} updated by {admin.username}")
    return APIResponse(message=f"Setting {key} updated", data={"key": key})
