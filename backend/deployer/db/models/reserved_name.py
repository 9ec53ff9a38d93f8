"""
Reserved Name Model

Project names that would collide with infrastructure subdomains.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime

from deployer.db.base import Base

DEFAULT_RESERVED_NAMES = ("admin", "api", "www", "cloud", "s3", "deployer", "auth", "status")


class ReservedName(Base):
    """保留名称表"""
    __tablename__ = "deploy_reserved_name"

    name = Column(String(255), primary_key=True, comment="Reserved project name")
    create_time = Column(DateTime, default=datetime.now, comment="Creation Time")

    def __repr__(self):
        return f"<ReservedName(name={self.name})>"
