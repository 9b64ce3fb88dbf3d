# billing_gateway/schemas/api_models.py
from __future__ import annotations

from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field


# -------------------------
# Provider lifecycle
# -------------------------
class InstallRequest(BaseModel):
    config: Dict[str, Any] = Field(default_factory=dict)   # validated against manifest configSchema
    webhookUrl: Optional[str] = None                       # omit to skip webhook registration


class InstallResponse(BaseModel):
    provider: str
    success: bool
    data: Dict[str, Any]                                   # persist as the install record


class UninstallRequest(BaseModel):
    config: Dict[str, Any] = Field(default_factory=dict)
    data: Dict[str, Any] = Field(default_factory=dict)     # install record from InstallResponse.data


class UninstallResponse(BaseModel):
    provider: str
    success: bool


# -------------------------
# Misc
# -------------------------
class HealthResponse(BaseModel):
    status: str = "ok"
    providers: List[str] = Field(default_factory=list)
