from newsbrief.orchestrators.briefing.dispatch import InProcessDispatcher, TaskiqDispatcher
from newsbrief.orchestrators.briefing.factory import build_briefing_service, build_pipeline
from newsbrief.orchestrators.briefing.pipeline import BriefingPipeline
from newsbrief.orchestrators.briefing.service import BriefingService

__all__ = [
    "BriefingPipeline",
    "BriefingService",
    "InProcessDispatcher",
    "TaskiqDispatcher",
    "build_briefing_service",
    "build_pipeline",
]
