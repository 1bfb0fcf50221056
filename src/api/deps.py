"""Service container shared by the API routers."""

from dataclasses import dataclass

from fastapi import Request

from src.knowledge_pipeline.chat_service import ChatService
from src.knowledge_pipeline.config import KnowledgeBaseConfig
from src.knowledge_pipeline.graph_service import GraphService
from src.knowledge_pipeline.pipeline import VideoPipeline
from src.knowledge_pipeline.storage_service import StorageService

from .monitoring import MonitoringState


@dataclass
class AppServices:
    """Services the route handlers depend on."""

    config: KnowledgeBaseConfig
    pipeline: VideoPipeline
    graph_service: GraphService
    chat_service: ChatService

    @property
    def storage(self) -> StorageService:
        return self.pipeline.storage_service

    @classmethod
    def from_pipeline(cls, pipeline: VideoPipeline) -> "AppServices":
        """Wire the graph and chat services around an existing pipeline."""
        return cls(
            config=pipeline.config,
            pipeline=pipeline,
            graph_service=GraphService(pipeline.storage_service),
            chat_service=ChatService(pipeline.storage_service, pipeline.rag_service),
        )

    @classmethod
    def from_config(cls, config: KnowledgeBaseConfig) -> "AppServices":
        return cls.from_pipeline(VideoPipeline(config))


def get_services(request: Request) -> AppServices:
    """FastAPI dependency returning the application's services."""
    return request.app.state.services


def get_monitoring(request: Request) -> MonitoringState:
    """FastAPI dependency returning the application's monitoring counters."""
    return request.app.state.monitoring
