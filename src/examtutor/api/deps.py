"""
examtutor API – shared components built once from settings.
"""

from functools import lru_cache

from examtutor.answering import AnswerOrchestrator
from examtutor.completion import CompletionClient
from examtutor.composition import ImageComposer
from examtutor.config import ProviderSettings, ServiceSettings
from examtutor.detection import QuestionBoundaryDetector
from examtutor.ingestion import IngestionPipeline, QuestionTextExtractor
from examtutor.ocr import CompletionOcrEngine, OcrEngine, TesseractOcrEngine
from examtutor.retrieval import QuestionResolver
from examtutor.schema import PipelineConfig
from examtutor.storage import (
    JsonQuestionStore,
    LocalObjectStorage,
    ObjectStorage,
    QuestionStore,
)
from examtutor.utils import get_logger

__all__ = ["Services", "build_services", "get_services"]


class Services:
    """
    The components an API request or script needs.

    Attributes:
        store (QuestionStore): Question records, page refs and answer-key links.
        storage (ObjectStorage): Question and page images.
        client (CompletionClient): Completion capability.
        pipeline (IngestionPipeline): Ingestion job.
        orchestrator (AnswerOrchestrator): Answering.
    """

    def __init__(
        self,
        store: QuestionStore,
        storage: ObjectStorage,
        client: CompletionClient,
        pipeline: IngestionPipeline,
        orchestrator: AnswerOrchestrator,
    ):
        self.store = store
        self.storage = storage
        self.client = client
        self.pipeline = pipeline
        self.orchestrator = orchestrator


def _build_ocr(settings: ServiceSettings, client: CompletionClient) -> OcrEngine | None:
    if settings.ocr_engine == "tesseract":
        return TesseractOcrEngine(tesseract_cmd=settings.tesseract_cmd)
    if settings.ocr_engine == "vision":
        return CompletionOcrEngine(client, provider=settings.ocr_provider)
    return None


def build_services(
    provider_settings: ProviderSettings | None = None,
    service_settings: ServiceSettings | None = None,
    pipeline_config: PipelineConfig | None = None,
) -> Services:
    """
    Wire the local filesystem stores, completion client, pipeline and orchestrator.

    Args:
        provider_settings: Provider keys and models; loaded from the environment if None.
        service_settings: Data directory and OCR choice; loaded from the environment if None.
        pipeline_config: Overrides `service_settings.pipeline_config_path`.

    Raises:
        ConfigurationError: If the default provider has no API key.
    """
    provider_settings = provider_settings or ProviderSettings()
    service_settings = service_settings or ServiceSettings()
    if pipeline_config is None:
        if service_settings.pipeline_config_path is not None:
            pipeline_config = PipelineConfig.from_yaml_path(
                service_settings.pipeline_config_path
            )
        else:
            pipeline_config = PipelineConfig()

    client = CompletionClient(provider_settings)
    storage = LocalObjectStorage(service_settings.objects_dir)
    store = JsonQuestionStore(service_settings.questions_dir)

    pipeline = IngestionPipeline(
        detector=QuestionBoundaryDetector(pipeline_config.detector, client),
        composer=ImageComposer(storage, pipeline_config.composer),
        store=store,
        extractor=QuestionTextExtractor(
            client, pipeline_config.extraction, logger=get_logger("ingestion")
        ),
        ocr=_build_ocr(service_settings, client),
        config=pipeline_config,
    )
    orchestrator = AnswerOrchestrator(
        client,
        QuestionResolver(store),
        storage,
        fetch_timeout=provider_settings.request_timeout,
    )
    return Services(store, storage, client, pipeline, orchestrator)


@lru_cache(maxsize=1)
def get_services() -> Services:
    """FastAPI dependency: the process-wide `Services`, built on first use."""
    return build_services()
