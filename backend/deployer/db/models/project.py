"""
Project Model

A named static site owned by one user; its bucket shares the project name.
"""

from sqlalchemy import Column, String, Index

from deployer.db.base import Base, BaseModel


class Project(Base, BaseModel):
    """
    项目表

    name 全局唯一（区分大小写），同时作为对象存储的 bucket 名称。
    active_deployment_id 指向当前线上的部署版本，只允许指向本项目 status=success 的部署。
    """
    __tablename__ = "deploy_project"

    user_id = Column(String(64), nullable=False, comment="Owner user ID")
    name = Column(String(255), nullable=False, unique=True, comment="Project name, also the bucket name")
    repo_url = Column(String(512), nullable=True, comment="Source repository URL")
    active_deployment_id = Column(String(36), nullable=True, comment="Deployment currently mirrored in the live key-space")

    __table_args__ = (
        Index("idx_project_user_id", "user_id"),
    )

    def __repr__(self):
        return f"<Project(id={self.id}, name={self.name}, active={self.active_deployment_id})>"
