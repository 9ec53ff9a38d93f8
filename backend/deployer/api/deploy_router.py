"""
Deploy API Router

部署上传相关的API路由定义
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import ValidationError

from deployer.core.upload_pipeline import SiteFile
from deployer.db.schemas import DeployMeta
from deployer.service.deployment_service import DeploymentService
from deployer.utils.auth import get_current_user_id
from deployer.utils.model.response_model import BaseResponse

logger = logging.getLogger(__name__)

# 创建路由器
deploy_router = APIRouter(tags=["deploy"])

# 创建service实例
deployment_service = DeploymentService()

# Per-part header carrying the file's path relative to the site root
FILE_PATH_HEADER = "x-file-path"


async def read_site_file(upload: UploadFile) -> SiteFile:
    """Buffer one multipart part; its path comes from X-File-Path or the filename"""
    path = upload.headers.get(FILE_PATH_HEADER) or upload.filename or ""
    content = await upload.read()
    content_type = upload.content_type
    if content_type == "application/octet-stream":
        content_type = None
    return SiteFile(path=path, content=content, content_type=content_type)


@deploy_router.post(
    "/deploy",
    summary="部署新版本",
    operation_id="deploy"
)
async def deploy(
    project_name: str = Form(..., description="Project name (bucket and subdomain)"),
    files: List[UploadFile] = File(..., description="Site files"),
    source: str = Form("cli", description="cli/ci/web"),
    repo_url: Optional[str] = Form(None),
    commit_hash: Optional[str] = Form(None),
    commit_message: Optional[str] = Form(None),
    user_id: str = Depends(get_current_user_id),
):
    """
    上传一组站点文件，作为项目的新版本发布

    项目不存在时自动创建
    """
    try:
        meta = DeployMeta(
            source=source,
            repo_url=repo_url,
            commit_hash=commit_hash,
            commit_message=commit_message,
        )
    except ValidationError as e:
        return BaseResponse.validation_error(data=e.errors(include_url=False), message="Invalid deploy metadata").to_json_response()

    site_files = [await read_site_file(f) for f in files]
    logger.info(f"Deploy request for '{project_name}': {len(site_files)} files from user {user_id}")

    response = await deployment_service.deploy(project_name, user_id, site_files, meta)
    return response.to_json_response()
