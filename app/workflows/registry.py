"""Processor registry: request type -> mutation processor. The single extension point for new types."""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from app.domain.models.request import RequestType
from app.governance.exceptions import UnknownProcessorError
from app.workflows.processors.allow_publish import AllowPublishProcessor
from app.workflows.processors.allow_schedule import AllowScheduleProcessor
from app.workflows.processors.base import MutationProcessor
from app.workflows.processors.delete_entry import DeleteEntryProcessor
from app.workflows.processors.delete_project import DeleteProjectProcessor
from app.workflows.processors.delete_tag import DeleteTagProcessor


class ProcessorRegistry:
    """
    Lookup populated at construction. resolve() on an unregistered type raises
    UnknownProcessorError; it never falls through to a no-op.
    """

    def __init__(
        self,
        processors: Mapping[RequestType, MutationProcessor],
        *,
        required: Optional[Iterable[RequestType]] = None,
    ) -> None:
        self._processors: dict[RequestType, MutationProcessor] = dict(processors)
        if required is not None:
            missing = [t.value for t in required if t not in self._processors]
            if missing:
                raise UnknownProcessorError(
                    f"No processor registered for request types: {', '.join(sorted(missing))}"
                )

    def resolve(self, request_type: RequestType) -> MutationProcessor:
        processor = self._processors.get(request_type)
        if processor is None:
            raise UnknownProcessorError(
                f"No processor found for request type: {getattr(request_type, 'value', request_type)}"
            )
        return processor

    def register(self, request_type: RequestType, processor: MutationProcessor) -> None:
        self._processors[request_type] = processor

    def registered_types(self) -> Mapping[RequestType, MutationProcessor]:
        return MappingProxyType(self._processors)


def default_registry() -> ProcessorRegistry:
    """Registry covering every RequestType. Fails at startup if one is missing."""
    return ProcessorRegistry(
        {
            RequestType.DELETE_PROJECT: DeleteProjectProcessor(),
            RequestType.DELETE_TAG: DeleteTagProcessor(),
            RequestType.DELETE_ENTRY: DeleteEntryProcessor(),
            RequestType.ALLOW_PUBLISH: AllowPublishProcessor(),
            RequestType.ALLOW_SCHEDULE: AllowScheduleProcessor(),
        },
        required=list(RequestType),
    )
