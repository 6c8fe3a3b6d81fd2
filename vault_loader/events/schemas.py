"""Loader event schemas."""

from typing import Literal

from pydantic import BaseModel
from pydantic import Field


class ModuleLoaded(BaseModel):
    """A script finished evaluating and its exports were cached."""

    type: Literal["module_loaded"] = "module_loaded"
    path: str = Field(description="Canonical path of the script")


class ModuleFailed(BaseModel):
    """A script failed to load and was recorded in the error table."""

    type: Literal["module_failed"] = "module_failed"
    path: str = Field(description="Canonical path of the script")
    error: str = Field(description="Formatted failure message")


class ReloadStarted(BaseModel):
    """A reload pass reset all loader state."""

    type: Literal["reload_started"] = "reload_started"
    pass_id: int = Field(description="Sequence number of the reload pass")


class ReloadFinished(BaseModel):
    """A reload pass completed; dependent indexes should refresh."""

    type: Literal["reload_finished"] = "reload_finished"
    pass_id: int = Field(description="Sequence number of the reload pass")
    loaded: list[str] = Field(default_factory=list, description="Paths loaded by the pass")
    failed: list[str] = Field(default_factory=list, description="Paths that failed during the pass")


LoaderEvent = ModuleLoaded | ModuleFailed | ReloadStarted | ReloadFinished
