"""
Deployment Model

One versioned upload attempt of a project and its outcome.
"""

from enum import Enum
from sqlalchemy import Column, String, Integer, BigInteger, Text, ForeignKey, Index, UniqueConstraint

from deployer.db.base import Base, BaseModel


class DeploymentStatus(str, Enum):
    """部署状态：uploading -> success | failed，终态不可回退"""
    UPLOADING = "uploading"
    SUCCESS = "success"
    FAILED = "failed"


class DeploymentSource(str, Enum):
    """Where a deployment was triggered from"""
    CLI = "cli"
    CI = "ci"
    WEB = "web"


class Deployment(Base, BaseModel):
    """
    部署表

    version 在同一项目内从 1 开始严格递增
    """
    __tablename__ = "deploy_deployment"

    project_id = Column(
        String(36),
        ForeignKey("deploy_project.id", ondelete="CASCADE"),
        nullable=False,
        comment="Owning project ID",
    )
    version = Column(Integer, nullable=False, comment="Per-project version number")
    status = Column(String(32), nullable=False, default=DeploymentStatus.UPLOADING.value, comment="uploading/success/failed")
    files_count = Column(Integer, nullable=False, default=0, comment="Files delivered to the live key-space")
    size_bytes = Column(BigInteger, nullable=False, default=0, comment="Bytes delivered to the live key-space")
    source = Column(String(16), nullable=False, default=DeploymentSource.CLI.value, comment="cli/ci/web")
    commit_hash = Column(String(64), nullable=True, comment="Source commit hash")
    commit_message = Column(String(512), nullable=True, comment="Source commit message")
    logs = Column(Text, nullable=True, comment="Failure reason or deployment log")

    __table_args__ = (
        UniqueConstraint("project_id", "version", name="uq_deployment_project_version"),
        Index("idx_deployment_project_id", "project_id"),
        Index("idx_deployment_status", "status"),
    )

    def __repr__(self):
        return f"<Deployment(id={self.id}, project_id={self.project_id}, version={self.version}, status={self.status})>"
