"""URL 매핑 결과 리포트 Pydantic 모델."""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Literal, Optional


class EndpointModel(BaseModel):
    name: str                                   # 클래스명 (FQCN)
    operation_paths: list[str] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)  # url mapping을 알 때만 채움


class MountModel(BaseModel):
    name: str
    url_mapping: Optional[str] = None           # None: web.xml/@ApplicationPath 둘 다 없음
    endpoints: list[str] = Field(default_factory=list)
    error: Optional[str] = None                 # 인스턴스화 실패 사유


class ConflictModel(BaseModel):
    operation_path: str
    mounts: list[str]


class UrlMappingReport(BaseModel):
    archive: str
    status: Literal["single", "table", "unresolved"]
    url_mapping: Optional[str] = None
    operations: dict[str, str] = Field(default_factory=dict)
    conflict: Optional[ConflictModel] = None
    endpoints: list[EndpointModel] = Field(default_factory=list)
    mounts: list[MountModel] = Field(default_factory=list)
    skipped_units: list[str] = Field(default_factory=list)
