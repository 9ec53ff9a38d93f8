"""
Project Schemas

Pydantic models for Project validation and serialization
"""

import re
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

# Project names double as bucket names and subdomains
PROJECT_NAME_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{1,61})[a-z0-9]$")


def validate_project_name(name: str) -> str:
    """Validate a project name against bucket/subdomain naming rules"""
    if not name:
        raise ValueError("Project name is required")
    if not PROJECT_NAME_PATTERN.match(name) or "--" in name:
        raise ValueError(
            "Project name must be 3-63 characters of lowercase letters, digits and single hyphens, "
            "starting and ending with a letter or digit"
        )
    return name


class ProjectCreate(BaseModel):
    """Schema for creating a project"""
    name: str = Field(..., max_length=63, description="Project name, also the bucket and subdomain")
    repo_url: Optional[str] = Field(None, max_length=512, description="Source repository URL")

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return validate_project_name(v)


class ProjectResponse(BaseModel):
    """Schema for project response"""
    id: str
    user_id: str
    name: str
    repo_url: Optional[str] = None
    active_deployment_id: Optional[str] = None
    url: Optional[str] = None
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None

    class Config:
        from_attributes = True


class NameAvailabilityRequest(BaseModel):
    """Schema for a bucket/project name availability check"""
    name: str = Field(..., description="Candidate project name")
