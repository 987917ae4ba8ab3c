from .models import (
    AgentPrompt,
    AgentPromptPack,
    CodebaseSummary,
    ImpactArea,
    ImpactSummary,
    PlanStep,
    Roadmap,
    StepKind,
)

__all__ = [
    "AgentPrompt",
    "AgentPromptPack",
    "CodebaseSummary",
    "ImpactArea",
    "ImpactSummary",
    "PlanStep",
    "Roadmap",
    "StepKind",
]
