"""
Deployment Schemas

Pydantic models for deployment metadata, engine inputs and engine reports
"""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from deployer.db.models.deployment import DeploymentSource


class DeployMeta(BaseModel):
    """Caller-supplied metadata recorded on a deployment"""
    source: DeploymentSource = Field(DeploymentSource.CLI, description="cli/ci/web")
    repo_url: Optional[str] = Field(None, max_length=512, description="Source repository URL")
    commit_hash: Optional[str] = Field(None, max_length=64, description="Source commit hash")
    commit_message: Optional[str] = Field(None, max_length=512, description="Source commit message")

    @field_validator("commit_hash")
    @classmethod
    def normalize_commit(cls, v: Optional[str]) -> Optional[str]:
        """Validate commit hash format"""
        if v is None or v == "":
            return None
        if not all(c in "0123456789abcdefABCDEF" for c in v):
            raise ValueError("Commit hash must be a valid hex string")
        return v.lower()


class DeploymentCreate(BaseModel):
    """Schema for creating a deployment row"""
    project_id: str
    version: Optional[int] = Field(None, ge=1, description="Assigned by the allocator")
    source: str = DeploymentSource.CLI.value
    commit_hash: Optional[str] = None
    commit_message: Optional[str] = None


class DeploymentResponse(BaseModel):
    """Schema for deployment response"""
    id: str
    project_id: str
    version: int
    status: str
    files_count: int = 0
    size_bytes: int = 0
    source: Optional[str] = None
    commit_hash: Optional[str] = None
    commit_message: Optional[str] = None
    logs: Optional[str] = None
    create_time: Optional[datetime] = None

    class Config:
        from_attributes = True


class DeploymentSummary(DeploymentResponse):
    """Deployment row as listed for a project, flagged when it is live"""
    is_active: bool = False


class DeployReport(BaseModel):
    """Result of a successful deploy"""
    deployment_id: str
    project_name: str
    version: int
    files_count: int
    size_bytes: int
    url: str
    missed_files: list[str] = Field(default_factory=list, description="Paths that failed the live write")
    snapshot_failures: list[str] = Field(default_factory=list, description="Paths that failed the snapshot write")


class RollbackReport(BaseModel):
    """Result of a rollback"""
    message: str
    deployment_id: str
    version: int
    files_restored: int
    files_removed: int
    url: str
    failed_keys: list[str] = Field(default_factory=list, description="Keys that failed to delete or restore")
